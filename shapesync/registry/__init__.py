# ==============================================
# REGISTRY: shapes committed so far
# ==============================================
#
# Modules:
# --------
# - shape_registry.py  → lookup / analyze / apply_delta / list_all_shapes
#
# ==============================================

from .shape_registry import ShapeRegistry

__all__ = ["ShapeRegistry"]
