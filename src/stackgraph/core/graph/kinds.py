# src/stackgraph/core/graph/kinds.py
"""
Catálogo de capacidades por tipo de recurso.

Cada `ResourceKind` é descrito por um `KindSpec`, que implementa a
interface de capacidades usada pelo Builder e pelo Executor:

    - declare_inputs()  → inputs aceitos (tipo, obrigatoriedade, validador)
    - declare_outputs() → outputs produzidos após materialização
    - materialize()     → delega ao provider (ou resolve localmente, para
                          tipos virtuais)

O catálogo é fechado: não há herança entre tipos nem registro dinâmico.
Validações de literais acontecem antes de qualquer chamada ao provider
(fail fast, sem efeitos colaterais parciais).
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional

from stackgraph.core.errors import invalid_input
from stackgraph.core.exceptions import ProviderError

from .types import ResourceKind, ValueType

if TYPE_CHECKING:
    from stackgraph.core.engine.provider import Provider


# Validadores retornam None quando o valor é válido, ou o motivo da rejeição.
Validator = Callable[[Any], Optional[str]]

_DNS_LABEL = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")


def cidr_block(value: Any) -> Optional[str]:
    try:
        ipaddress.ip_network(value, strict=True)
    except ValueError as e:
        return f"CIDR inválido: {e}"
    return None


def tcp_port(value: Any) -> Optional[str]:
    if not 1 <= value <= 65535:
        return f"porta fora do intervalo 1-65535: {value}"
    return None


def tcp_ports(value: Any) -> Optional[str]:
    for port in value:
        if isinstance(port, bool) or not isinstance(port, int):
            return f"porta deve ser inteiro: {port!r}"
        reason = tcp_port(port)
        if reason:
            return reason
    return None


def dns_name(value: Any) -> Optional[str]:
    labels = value.rstrip(".").lower().split(".")
    if len(labels) < 2 or not all(_DNS_LABEL.match(label) for label in labels):
        return f"nome DNS inválido: {value!r}"
    return None


def positive(value: Any) -> Optional[str]:
    if value <= 0:
        return f"deve ser positivo: {value}"
    return None


def percent(value: Any) -> Optional[str]:
    if not 1 <= value <= 100:
        return f"percentual fora do intervalo 1-100: {value}"
    return None


def one_of(*allowed: str) -> Validator:
    def _check(value: Any) -> Optional[str]:
        if value not in allowed:
            return f"valor {value!r} não está em {sorted(allowed)}"
        return None
    return _check


@dataclass(frozen=True)
class InputSpec:
    type: ValueType
    required: bool = True
    validator: Optional[Validator] = None


@dataclass(frozen=True)
class KindSpec:
    """
    Capacidades de um tipo de recurso.

    Campos:
        - kind: tipo descrito
        - inputs: nome do input → InputSpec
        - outputs: nome do output → ValueType
        - virtual: materializado pelo Executor, sem chamada ao provider
        - check: validação entre inputs literais (ex.: min <= desired <= max)
    """

    kind: ResourceKind
    inputs: Mapping[str, InputSpec]
    outputs: Mapping[str, ValueType]
    virtual: bool = False
    check: Optional[Callable[[Mapping[str, Any]], Optional[str]]] = field(default=None, compare=False)

    def declare_inputs(self) -> Mapping[str, InputSpec]:
        return self.inputs

    def declare_outputs(self) -> Mapping[str, ValueType]:
        return self.outputs

    def validate_literals(self, node: str, inputs: Mapping[str, Any], is_literal: Callable[[Any], bool]) -> None:
        """
        Valida inputs declarados de um Node antes do provisionamento.

        Bindings são ignorados aqui (seu tipo é verificado pelo Builder);
        apenas literais passam por tipo e validador de formato.

        Raises:
            InvalidInput: input desconhecido, obrigatório ausente, tipo ou formato inválido.
        """
        for name in sorted(inputs):
            if name not in self.inputs:
                raise invalid_input(
                    node=node,
                    input_name=name,
                    reason=f"input não declarado por '{self.kind.value}' (aceitos: {sorted(self.inputs)})",
                )

        for name, spec in sorted(self.inputs.items()):
            if name not in inputs:
                if spec.required:
                    raise invalid_input(node=node, input_name=name, reason="input obrigatório ausente")
                continue

            value = inputs[name]
            if not is_literal(value):
                continue
            if not spec.type.accepts(value):
                raise invalid_input(
                    node=node,
                    input_name=name,
                    reason=f"esperado {spec.type.value}, recebido {type(value).__name__}",
                )
            if spec.validator is not None:
                reason = spec.validator(value)
                if reason:
                    raise invalid_input(node=node, input_name=name, reason=reason)

        if self.check is not None:
            literals = {k: v for k, v in inputs.items() if is_literal(v)}
            reason = self.check(literals)
            if reason:
                raise invalid_input(node=node, input_name="*", reason=reason)

    def materialize(
        self,
        provider: "Provider",
        resolved_inputs: Dict[str, Any],
        *,
        node_id: str,
        current: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Materializa o recurso e valida os outputs retornados.

        Tipos virtuais ecoam o input `value`. Para os demais, `current`
        presente indica recurso já existente (update), ausente indica create.

        Raises:
            ProviderError: falha do provider ou output declarado ausente/mal tipado.
        """
        if self.virtual:
            return {"value": resolved_inputs.get("value")}

        if current is None:
            outputs = provider.create(self.kind, dict(resolved_inputs), node_id=node_id)
        else:
            outputs = provider.update(self.kind, dict(current), dict(resolved_inputs), node_id=node_id)

        if not isinstance(outputs, dict):
            raise ProviderError(
                message=f"Provider retornou outputs inválidos para '{self.kind.value}'",
                details={"kind": self.kind.value, "received": type(outputs).__name__},
            )

        for name, out_type in self.outputs.items():
            if name not in outputs:
                raise ProviderError(
                    message=f"Provider não retornou o output declarado '{name}'",
                    details={"kind": self.kind.value, "output": name},
                )
            if not out_type.accepts(outputs[name]):
                raise ProviderError(
                    message=f"Output '{name}' com tipo inesperado",
                    details={"kind": self.kind.value, "output": name, "expected": out_type.value},
                )
        return dict(outputs)


def _capacity(inputs: Mapping[str, Any]) -> Optional[str]:
    lo = inputs.get("min_capacity")
    hi = inputs.get("max_capacity")
    desired = inputs.get("desired_capacity")
    if None in (lo, hi, desired):
        return None
    if not lo <= desired <= hi:
        return f"capacidade deve respeitar min <= desired <= max ({lo} <= {desired} <= {hi})"
    return None


S, I, B, L, A = (
    ValueType.STRING,
    ValueType.INTEGER,
    ValueType.BOOLEAN,
    ValueType.LIST,
    ValueType.ANY,
)


def _opt(t: ValueType, validator: Optional[Validator] = None) -> InputSpec:
    return InputSpec(t, required=False, validator=validator)


KIND_SPECS: Dict[ResourceKind, KindSpec] = {
    spec.kind: spec
    for spec in (
        KindSpec(
            ResourceKind.NETWORK,
            inputs={
                "cidr": InputSpec(S, validator=cidr_block),
                "max_azs": _opt(I, positive),
                "subnets": _opt(L),
            },
            outputs={"network_id": S, "public_subnet_ids": L, "isolated_subnet_ids": L},
        ),
        KindSpec(
            ResourceKind.SECURITY_GROUP,
            inputs={
                "network_id": InputSpec(S),
                "description": _opt(S),
                "allow_all_outbound": _opt(B),
                "ingress_ports": _opt(L, tcp_ports),
                "ingress_cidr": _opt(S, cidr_block),
                "ingress_source_group_id": _opt(S),
            },
            outputs={"group_id": S},
        ),
        KindSpec(
            ResourceKind.LAUNCH_TEMPLATE,
            inputs={
                "instance_type": InputSpec(S),
                "machine_image": InputSpec(S),
                "security_group_id": InputSpec(S),
            },
            outputs={"launch_template_id": S},
        ),
        KindSpec(
            ResourceKind.COMPUTE_GROUP,
            inputs={
                "subnet_ids": InputSpec(L),
                "launch_template_id": InputSpec(S),
                "min_capacity": InputSpec(I, validator=positive),
                "max_capacity": InputSpec(I, validator=positive),
                "desired_capacity": InputSpec(I, validator=positive),
                "cpu_target_percent": _opt(I, percent),
            },
            outputs={"group_name": S, "group_arn": S},
            check=_capacity,
        ),
        KindSpec(
            ResourceKind.DATABASE,
            inputs={
                "engine": InputSpec(S, validator=one_of("mysql", "postgres", "mariadb")),
                "engine_version": InputSpec(S),
                "instance_type": InputSpec(S),
                "subnet_ids": InputSpec(L),
                "security_group_id": InputSpec(S),
                "multi_az": _opt(B),
                "allocated_storage_gib": InputSpec(I, validator=positive),
                "storage_type": _opt(S, one_of("gp2", "gp3", "io1")),
            },
            outputs={"instance_id": S, "endpoint": S, "port": I},
        ),
        KindSpec(
            ResourceKind.CERTIFICATE,
            inputs={
                "domain_name": InputSpec(S, validator=dns_name),
                "zone_id": InputSpec(S),
                "validation": _opt(S, one_of("dns", "email")),
            },
            outputs={"certificate_arn": S},
        ),
        KindSpec(
            ResourceKind.LOAD_BALANCER,
            inputs={
                "subnet_ids": InputSpec(L),
                "security_group_id": InputSpec(S),
                "internet_facing": _opt(B),
            },
            outputs={"load_balancer_arn": S, "dns_name": S},
        ),
        KindSpec(
            ResourceKind.TARGET_GROUP,
            inputs={
                "network_id": InputSpec(S),
                "port": InputSpec(I, validator=tcp_port),
                "protocol": _opt(S, one_of("HTTP", "HTTPS")),
                "compute_group_name": InputSpec(S),
                "health_check_path": _opt(S),
            },
            outputs={"target_group_arn": S},
        ),
        KindSpec(
            ResourceKind.LISTENER,
            inputs={
                "load_balancer_arn": InputSpec(S),
                "port": InputSpec(I, validator=tcp_port),
                "target_group_arn": InputSpec(S),
                "certificate_arn": _opt(S),
            },
            outputs={"listener_arn": S},
        ),
        KindSpec(
            ResourceKind.CDN_DISTRIBUTION,
            inputs={
                "origin_domain_name": InputSpec(S),
                "domain_names": InputSpec(L),
                "certificate_arn": InputSpec(S),
                "default_root_object": _opt(S),
                "viewer_protocol_policy": _opt(S, one_of("allow-all", "redirect-to-https", "https-only")),
                "cache_policy": _opt(S),
            },
            outputs={"distribution_id": S, "domain_name": S},
        ),
        KindSpec(
            ResourceKind.DNS_ZONE,
            inputs={"domain_name": InputSpec(S, validator=dns_name), "lookup": _opt(B)},
            outputs={"zone_id": S, "zone_name": S},
        ),
        KindSpec(
            ResourceKind.DNS_RECORD,
            inputs={
                "zone_id": InputSpec(S),
                "record_name": InputSpec(S),
                "alias_target": InputSpec(S),
                "record_type": _opt(S, one_of("A", "AAAA", "CNAME")),
            },
            outputs={"fqdn": S},
        ),
        KindSpec(
            ResourceKind.STACK_OUTPUT,
            inputs={"value": InputSpec(A), "description": _opt(S)},
            outputs={"value": A},
            virtual=True,
        ),
        KindSpec(
            ResourceKind.STACK_INPUT,
            inputs={"value": _opt(A)},
            outputs={"value": A},
            virtual=True,
        ),
    )
}


def spec_for(kind: ResourceKind) -> KindSpec:
    return KIND_SPECS[ResourceKind(kind)]
