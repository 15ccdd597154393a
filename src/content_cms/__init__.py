"""
Content CMS backend.

Pages are assembled from layouts, layouts hold ordered component instances, and each
component instance stores type-tagged field values whose shape is described by an
administrator-defined component type schema.
"""

__version__ = "0.1.0"
