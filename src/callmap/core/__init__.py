"""Core graph, layout, viewport and data-source components."""
