# src/stackgraph/blueprints/__init__.py
"""Composições prontas de Stacks sobre o core do stackgraph."""

from .web_tier import CERTIFICATE_REGION, build_certificate_stack, build_web_tier

__all__ = ["CERTIFICATE_REGION", "build_certificate_stack", "build_web_tier"]
