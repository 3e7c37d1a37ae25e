"""
Common JAX initialization.

Every module in tag-layout imports ``jax`` / ``jnp`` from here so that
64-bit precision is enabled exactly once, before any array is created.

Usage:
    from tag_layout.core.jax_init import jax, jnp
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)

__all__ = ["jax", "jnp"]
