"""
Layout engine: geometry, text metrics, layout estimation, density analysis,
break scoring and the pagination engine.

Modules are imported directly (``docstamp.engine.pagination_manager`` etc.);
``docstamp.config`` depends on ``engine.geometry``, so this package keeps no
eager imports.
"""
