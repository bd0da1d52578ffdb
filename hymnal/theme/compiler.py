"""Compile a resolved theme into a Qt stylesheet."""

from __future__ import annotations

from hymnal.theme.models import ResolvedTheme, TextStyle

_FALLBACK_FONTS = '"Noto Sans", "Segoe UI", sans-serif'


def compile_theme_stylesheet(theme: ResolvedTheme, *, extra_stylesheet: str = "") -> str:
    """Build the application stylesheet for ``theme``."""
    sections = [
        _base_styles(theme),
        _button_styles(theme),
        _form_styles(theme),
        _slider_styles(theme),
        _list_styles(theme),
    ]
    stylesheet = "\n".join(sections)
    extra = extra_stylesheet.strip()
    if extra:
        stylesheet = f"{stylesheet}\n\n{extra}\n"
    return stylesheet


def _font_stack(theme: ResolvedTheme) -> str:
    if theme.font_family:
        return f'"{theme.font_family}", {_FALLBACK_FONTS}'
    return _FALLBACK_FONTS


def _font(style: TextStyle) -> str:
    return f"font-size: {style.font_size:.1f}px;\n    font-weight: {style.font_weight};"


def _base_styles(theme: ResolvedTheme) -> str:
    scheme = theme.color_scheme
    surfaces = theme.surfaces
    body = theme.text_theme["bodyLarge"]
    muted = theme.text_theme["bodyMedium"]
    title = theme.components.app_bar.title_style
    return f"""
QWidget {{
    background-color: {surfaces.background};
    color: {scheme.on_surface};
    font-family: {_font_stack(theme)};
    {_font(body)}
}}

QMainWindow {{
    background-color: {surfaces.background};
}}

QLabel {{
    color: {scheme.on_surface};
    background-color: transparent;
}}

#AppBar {{
    background-color: {theme.components.app_bar.background};
    min-height: {theme.metrics.app_bar_height:.0f}px;
}}

#AppBarTitle {{
    color: {title.color};
    {_font(title)}
}}

#StatusMuted {{
    color: {muted.color};
    {_font(muted)}
}}

QFrame#Card {{
    background-color: {theme.components.card.color};
    border: 1px solid {theme.components.card.border_color};
    border-radius: {theme.components.card.border_radius:.0f}px;
    margin: {theme.components.card.margin:.0f}px;
}}
"""


def _button_styles(theme: ResolvedTheme) -> str:
    button = theme.components.elevated_button
    filled = theme.components.filled_button
    return f"""
QPushButton {{
    background-color: {button.background};
    color: {button.foreground};
    border: none;
    border-radius: {button.border_radius:.0f}px;
    padding: {button.vertical_padding:.0f}px {button.horizontal_padding:.0f}px;
    min-height: {button.min_height:.0f}px;
    {_font(button.text_style)}
}}

QPushButton:disabled {{
    background-color: {button.disabled_background};
    color: {button.disabled_foreground};
}}

QPushButton[role="filled"] {{
    background-color: {filled.background};
    color: {filled.foreground};
}}
"""


def _form_styles(theme: ResolvedTheme) -> str:
    field = theme.components.input
    switch = theme.components.switch
    return f"""
QLineEdit, QSpinBox, QComboBox {{
    background-color: {field.fill_color};
    border: 1px solid {field.border_color};
    border-radius: {field.border_radius:.0f}px;
    padding: {field.content_padding / 2:.0f}px {field.content_padding:.0f}px;
    color: {theme.color_scheme.on_surface};
    {_font(field.label_style)}
}}

QLineEdit:focus, QSpinBox:focus, QComboBox:focus {{
    border: 2px solid {field.focused_border_color};
}}

QLineEdit[error="true"] {{
    border: 1px solid {field.error_border_color};
}}

QCheckBox::indicator {{
    background-color: {switch.track};
    border: 1px solid {switch.thumb};
}}

QCheckBox::indicator:checked {{
    background-color: {switch.track_selected};
    border-color: {switch.track_selected};
}}
"""


def _slider_styles(theme: ResolvedTheme) -> str:
    slider = theme.components.slider
    track = slider.track_height
    return f"""
QSlider::groove:horizontal {{
    background: {slider.inactive_track};
    height: {track:.0f}px;
    border-radius: {track / 2:.0f}px;
}}

QSlider::sub-page:horizontal {{
    background: {slider.active_track};
    border-radius: {track / 2:.0f}px;
}}

QSlider::handle:horizontal {{
    background: {slider.thumb};
    width: {track * 4:.0f}px;
    margin: -{track * 1.5:.0f}px 0;
    border-radius: {track * 2:.0f}px;
}}
"""


def _list_styles(theme: ResolvedTheme) -> str:
    tile = theme.components.list_tile
    divider = theme.components.divider
    return f"""
QListView, QTreeView, QTableView {{
    background-color: {theme.surfaces.surface};
    color: {tile.text_color};
    border: none;
}}

QListView::item {{
    padding: {tile.vertical_padding:.0f}px {tile.horizontal_padding:.0f}px;
    border-bottom: {divider.thickness:.0f}px solid {divider.color};
}}

QListView::item:selected {{
    background-color: {theme.color_scheme.primary_container};
    color: {theme.color_scheme.on_primary_container};
}}
"""
