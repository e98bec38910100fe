"""
View layer: formatters, theme, chart configuration, section renderers,
dashboard controllers and page assembly.
"""
