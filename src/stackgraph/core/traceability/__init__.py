# src/stackgraph/core/traceability/__init__.py
"""
Pacote de rastreabilidade do stackgraph — DeploymentManifest.

API pública:
    - DeploymentManifest → estrutura canônica do Manifest
    - create_manifest    → criação explícita do Manifest
    - add_event          → registro explícito no Event Log
    - node_started / node_finished / node_failed / node_skipped
    - run_started / run_finished
    - applied_order / manifest_outputs → insumos para destroy posterior
    - save_manifest / load_manifest    → persistência em JSON

Nenhum evento é emitido implicitamente; a ordem do Event Log reflete a
ordem de chamada.
"""

from .manifest import (
    NODE_FAILED,
    NODE_FINISHED,
    NODE_SKIPPED,
    NODE_STARTED,
    RUN_FINISHED,
    RUN_STARTED,
    DeploymentManifest,
    add_event,
    applied_order,
    create_manifest,
    load_manifest,
    manifest_outputs,
    node_failed,
    node_finished,
    node_skipped,
    node_started,
    record_graph,
    run_finished,
    run_started,
    save_manifest,
)

__all__ = [
    "NODE_FAILED",
    "NODE_FINISHED",
    "NODE_SKIPPED",
    "NODE_STARTED",
    "RUN_FINISHED",
    "RUN_STARTED",
    "DeploymentManifest",
    "add_event",
    "applied_order",
    "create_manifest",
    "load_manifest",
    "manifest_outputs",
    "node_failed",
    "node_finished",
    "node_skipped",
    "node_started",
    "record_graph",
    "run_finished",
    "run_started",
    "save_manifest",
]
