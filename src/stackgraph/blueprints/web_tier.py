# src/stackgraph/blueprints/web_tier.py
"""
Blueprint da camada web: CDN + load balancer + auto scaling + banco MySQL.

Declara duas Stacks num Deployment:

    certificates (us-east-1)
        hosted_zone → certificate  (exportado como `certificate_arn`)

    web (região da aplicação)
        rede 10.0.0.0/16 (2 AZs, sub-redes públicas e isoladas),
        security groups alb/web/database, banco mysql 8.0 multi-AZ,
        launch template + compute group (1/2/3, CPU alvo 70%),
        certificado regional, load balancer, target group, listeners
        http/https, distribuição de CDN com o certificado importado de
        us-east-1, registro DNS alias e outputs da Stack

O certificado da CDN precisa existir em us-east-1, por isso vive numa
Stack própria; quando a região da aplicação é outra, o Linker transforma
o link em barreira e a Stack `certificates` é aplicada por completo antes
de qualquer Node de `web`.
"""

from __future__ import annotations

from typing import Optional, Tuple

from stackgraph.core.config.errors import InvalidSettingsError
from stackgraph.core.graph.deployment import Deployment
from stackgraph.core.graph.stack import Stack
from stackgraph.core.graph.types import ResourceKind, ValueType

CERTIFICATE_REGION = "us-east-1"
DEFAULT_SUBDOMAIN = "iac-test"
INSTANCE_TYPE = "t3.micro"


def _parameter(deployment: Deployment, name: str, value: Optional[str]) -> str:
    if value is None:
        value = deployment.parameters.get(name)
    if not isinstance(value, str) or not value.strip():
        raise InvalidSettingsError(f"parameters.{name} deve ser string não vazia, recebido: {value!r}")
    return value


def build_certificate_stack(
    deployment: Deployment,
    *,
    domain_name: str,
    full_domain_name: str,
    name: str = "certificates",
) -> Stack:
    certs = deployment.add_stack(Stack(name, region=CERTIFICATE_REGION))
    zone = certs.declare(ResourceKind.DNS_ZONE, "hosted_zone", {"domain_name": domain_name, "lookup": True})
    certs.declare(
        ResourceKind.CERTIFICATE,
        "certificate",
        {"domain_name": full_domain_name, "zone_id": zone.ref("zone_id"), "validation": "dns"},
    )
    return certs


def build_web_tier(
    deployment: Deployment,
    *,
    domain_name: Optional[str] = None,
    region: Optional[str] = None,
    subdomain: str = DEFAULT_SUBDOMAIN,
) -> Tuple[Stack, Stack]:
    """
    Declara as Stacks `certificates` e `web` no Deployment.

    `domain_name` e `region`, quando omitidos, vêm de `parameters` da
    configuração do deploy.

    Returns:
        Tuple[Stack, Stack]: (certificates, web)

    Raises:
        InvalidSettingsError: `domain_name` ou `region` ausentes.
    """
    domain_name = _parameter(deployment, "domain_name", domain_name)
    region = _parameter(deployment, "region", region)
    full_domain_name = f"{subdomain}.{domain_name}"

    certs = build_certificate_stack(deployment, domain_name=domain_name, full_domain_name=full_domain_name)
    web = deployment.add_stack(Stack("web", region=region))
    deployment.share(certs, "certificate", "certificate_arn", web, "certificate_arn", ValueType.STRING)

    zone = web.declare(ResourceKind.DNS_ZONE, "hosted_zone", {"domain_name": domain_name, "lookup": True})

    network = web.declare(
        ResourceKind.NETWORK,
        "network",
        {
            "cidr": "10.0.0.0/16",
            "max_azs": 2,
            "subnets": [
                {"name": "public", "type": "public", "cidr_mask": 24},
                {"name": "isolated", "type": "isolated", "cidr_mask": 24},
            ],
        },
    )

    # security groups
    alb_sg = web.declare(
        ResourceKind.SECURITY_GROUP,
        "alb_security_group",
        {
            "network_id": network.ref("network_id"),
            "description": "Security group for ALB",
            "allow_all_outbound": True,
            "ingress_ports": [80, 443],
            "ingress_cidr": "0.0.0.0/0",
        },
    )
    web_sg = web.declare(
        ResourceKind.SECURITY_GROUP,
        "web_security_group",
        {
            "network_id": network.ref("network_id"),
            "description": "Security group for Web Servers",
            "allow_all_outbound": True,
            "ingress_ports": [80, 443],
            "ingress_source_group_id": alb_sg.ref("group_id"),
        },
    )
    db_sg = web.declare(
        ResourceKind.SECURITY_GROUP,
        "database_security_group",
        {
            "network_id": network.ref("network_id"),
            "description": "Security group for RDS",
            "allow_all_outbound": True,
            "ingress_ports": [3306],
            "ingress_source_group_id": web_sg.ref("group_id"),
        },
    )

    web.declare(
        ResourceKind.DATABASE,
        "database",
        {
            "engine": "mysql",
            "engine_version": "8.0",
            "instance_type": INSTANCE_TYPE,
            "subnet_ids": network.ref("isolated_subnet_ids"),
            "security_group_id": db_sg.ref("group_id"),
            "multi_az": True,
            "allocated_storage_gib": 20,
            "storage_type": "gp2",
        },
    )

    # compute
    template = web.declare(
        ResourceKind.LAUNCH_TEMPLATE,
        "launch_template",
        {
            "instance_type": INSTANCE_TYPE,
            "machine_image": "amazon-linux-2",
            "security_group_id": web_sg.ref("group_id"),
        },
    )
    group = web.declare(
        ResourceKind.COMPUTE_GROUP,
        "compute_group",
        {
            "subnet_ids": network.ref("public_subnet_ids"),
            "launch_template_id": template.ref("launch_template_id"),
            "min_capacity": 1,
            "max_capacity": 3,
            "desired_capacity": 2,
            "cpu_target_percent": 70,
        },
    )

    # balanceamento
    alb_certificate = web.declare(
        ResourceKind.CERTIFICATE,
        "alb_certificate",
        {"domain_name": full_domain_name, "zone_id": zone.ref("zone_id"), "validation": "dns"},
    )
    alb = web.declare(
        ResourceKind.LOAD_BALANCER,
        "load_balancer",
        {
            "subnet_ids": network.ref("public_subnet_ids"),
            "security_group_id": alb_sg.ref("group_id"),
            "internet_facing": True,
        },
    )
    target_group = web.declare(
        ResourceKind.TARGET_GROUP,
        "target_group",
        {
            "network_id": network.ref("network_id"),
            "port": 80,
            "protocol": "HTTP",
            "compute_group_name": group.ref("group_name"),
            "health_check_path": "/",
        },
    )
    web.declare(
        ResourceKind.LISTENER,
        "http_listener",
        {
            "load_balancer_arn": alb.ref("load_balancer_arn"),
            "port": 80,
            "target_group_arn": target_group.ref("target_group_arn"),
        },
    )
    web.declare(
        ResourceKind.LISTENER,
        "https_listener",
        {
            "load_balancer_arn": alb.ref("load_balancer_arn"),
            "port": 443,
            "target_group_arn": target_group.ref("target_group_arn"),
            "certificate_arn": alb_certificate.ref("certificate_arn"),
        },
    )

    # borda
    distribution = web.declare(
        ResourceKind.CDN_DISTRIBUTION,
        "distribution",
        {
            "origin_domain_name": alb.ref("dns_name"),
            "domain_names": [full_domain_name],
            "certificate_arn": web.input_ref("certificate_arn"),
            "default_root_object": "index.html",
            "viewer_protocol_policy": "redirect-to-https",
            "cache_policy": "CachingOptimized",
        },
    )
    web.declare(
        ResourceKind.DNS_RECORD,
        "alias_record",
        {
            "zone_id": zone.ref("zone_id"),
            "record_name": subdomain,
            "alias_target": distribution.ref("domain_name"),
            "record_type": "A",
        },
    )

    web.declare(
        ResourceKind.STACK_OUTPUT,
        "domain_name",
        {"value": full_domain_name, "description": "Domain Name"},
    )
    web.declare(
        ResourceKind.STACK_OUTPUT,
        "distribution_domain_name",
        {"value": distribution.ref("domain_name"), "description": "CloudFront Distribution Domain Name"},
    )

    return certs, web
