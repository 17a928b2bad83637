from .plotly_render import build_forest_figure, write_html

__all__ = ["build_forest_figure", "write_html"]
