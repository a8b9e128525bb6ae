"""
HTML rendering of the movement history.

Narrow viewports get a card list, wide ones a table. Both show the same
fields and the same row actions.
"""

import html
import logging
from urllib.parse import quote, urlencode

from movements import config
from movements.actions import DELETE_PROMPT
from movements.filters import local_datetime

logger = logging.getLogger("movements.render")

LAYOUT_CARDS = "cards"
LAYOUT_TABLE = "table"

EMPTY_CARDS_TEXT = "No hay movimientos para los filtros seleccionados."
EMPTY_TABLE_TEXT = "No hay movimientos registrados para los filtros seleccionados."

_MONTHS_ES = ["ene", "feb", "mar", "abr", "may", "jun",
              "jul", "ago", "sept", "oct", "nov", "dic"]

_BADGE = ("font-size:12px;background:#f1f5f9;color:#64748b;"
          "border-radius:9999px;padding:2px 8px")
_MUTED = "color:#64748b;font-size:14px"
_BUTTON = ("display:inline-block;padding:4px 8px;border:1px solid #e2e8f0;"
           "border-radius:6px;text-decoration:none;color:#0f172a;font-size:13px")
_DANGER = ("padding:4px 8px;border:1px solid #fecaca;border-radius:6px;"
           "background:#fff;color:#dc2626;font-size:13px;cursor:pointer")


def choose_layout(viewport_width=None, breakpoint=None):
    """Cards below the breakpoint, table otherwise (and when width is unknown)."""
    if viewport_width is None:
        return LAYOUT_TABLE
    if viewport_width < (breakpoint or config.CARD_BREAKPOINT):
        return LAYOUT_CARDS
    return LAYOUT_TABLE


def format_datetime_es(value, tz):
    """dd MMM yyyy, HH:mm with Spanish month abbreviations."""
    d = local_datetime(value, tz)
    return f"{d.day:02d} {_MONTHS_ES[d.month - 1]} {d.year}, {d.hour:02d}:{d.minute:02d}"


def format_day_es(value):
    """d MMM, for the date-range chips."""
    return f"{value.day} {_MONTHS_ES[value.month - 1]}"


def _e(value):
    return html.escape("" if value is None else str(value))


def _row_url(base, movement_id, suffix=""):
    return f"{base}/{quote(movement_id, safe='')}{suffix}"


# ═══════════════════════════════════════════
#  ROW ACTIONS
# ═══════════════════════════════════════════

def render_actions(m, base):
    """Photo (view+download, or attach), edit and delete controls for one movement."""
    parts = []
    if m.photo_url:
        parts.append(
            f'<a href="{_e(_row_url(base, m.id, "/photo"))}" target="_blank" '
            f'rel="noopener" style="{_BUTTON}" title="Ver foto">Ver</a>'
        )
        parts.append(
            f'<a href="{_e(_row_url(base, m.id, "/photo/download"))}" '
            f'style="{_BUTTON}" title="Descargar foto">Descargar</a>'
        )
    else:
        parts.append(
            f'<a href="{_e(_row_url(base, m.id, "/photo/attach"))}" '
            f'style="{_BUTTON}" title="Adjuntar foto">Foto</a>'
        )
    parts.append(
        f'<a href="{_e(_row_url(base, m.id, "/edit"))}" style="{_BUTTON}" title="Editar">Editar</a>'
    )
    prompt = html.escape(DELETE_PROMPT.replace("'", "\\'"))
    parts.append(
        f'<form method="post" action="{_e(_row_url(base, m.id, "/delete"))}" '
        f'style="display:inline" onsubmit="return confirm(\'{prompt}\')">'
        f'<input type="hidden" name="confirm" value="true">'
        f'<button type="submit" style="{_DANGER}" title="Eliminar">Eliminar</button>'
        f'</form>'
    )
    return '<div style="display:flex;gap:4px;justify-content:flex-end">' + "".join(parts) + "</div>"


# ═══════════════════════════════════════════
#  CARDS (narrow viewport)
# ═══════════════════════════════════════════

def render_card(m, tz, base):
    return (
        '<div style="border:1px solid #e2e8f0;border-radius:8px;margin-bottom:16px">'
        '<div style="padding:16px">'
        '<div style="display:flex;justify-content:space-between;align-items:flex-start">'
        f'<div><p style="font-weight:700;font-size:18px;margin:0">{_e(m.container)}</p>'
        f'<p style="{_MUTED};margin:0">{_e(m.driver)} / {_e(m.plate)}</p></div>'
        f'<span style="{_BADGE}">{_e(m.status)}</span>'
        '</div>'
        f'<div style="{_MUTED};margin-top:12px">{_e(m.origin)} &rarr; {_e(m.destination)}</div>'
        f'<p style="font-size:12px;color:#64748b;padding-top:8px;margin:0">'
        f'{_e(format_datetime_es(m.date, tz))}</p>'
        '</div>'
        f'<div style="border-top:1px solid #e2e8f0;padding:8px">{render_actions(m, base)}</div>'
        '</div>'
    )


def render_cards(movements, tz, base):
    if not movements:
        return f'<p style="text-align:center;{_MUTED};padding:40px 0">{EMPTY_CARDS_TEXT}</p>'
    return '<div class="movement-cards">' + "".join(render_card(m, tz, base) for m in movements) + "</div>"


# ═══════════════════════════════════════════
#  TABLE (wide viewport)
# ═══════════════════════════════════════════

def render_table_row(m, tz, base):
    return (
        "<tr>"
        f'<td><div style="font-weight:500">{_e(m.container)}</div>'
        f'<div style="{_MUTED}">{_e(m.driver)} / {_e(m.plate)}</div></td>'
        f'<td><span style="font-weight:500">{_e(m.origin)}</span> '
        f'<span style="color:#64748b">&rarr;</span> '
        f'<span style="font-weight:500">{_e(m.destination)}</span> '
        f'<span style="{_BADGE}">{_e(m.status)}</span></td>'
        f"<td>{_e(format_datetime_es(m.date, tz))}</td>"
        f"<td>{render_actions(m, base)}</td>"
        "</tr>"
    )


def render_table(movements, tz, base):
    head = (
        "<thead><tr><th>Contenedor</th><th>Movimiento</th>"
        "<th>Fecha</th><th>Acciones</th></tr></thead>"
    )
    if movements:
        body = "".join(render_table_row(m, tz, base) for m in movements)
    else:
        body = f'<tr><td colspan="4" style="text-align:center;height:96px">{EMPTY_TABLE_TEXT}</td></tr>'
    return (
        '<div style="overflow-x:auto"><table class="movement-table" style="width:100%;border-collapse:collapse">'
        f"{head}<tbody>{body}</tbody></table></div>"
    )


# ═══════════════════════════════════════════
#  PAGE
# ═══════════════════════════════════════════

def render_header(movements, date_range, base):
    query = urlencode({k: v or "" for k, v in date_range.to_dict().items()})
    if movements:
        csv_link = f'<a href="{_e(base)}/export.csv?{_e(query)}" style="{_BUTTON}">Descargar CSV</a>'
    else:
        csv_link = (
            f'<a aria-disabled="true" style="{_BUTTON};opacity:0.5;pointer-events:none">'
            "Descargar CSV</a>"
        )
    return (
        '<div style="display:flex;justify-content:space-between;align-items:flex-start;gap:16px">'
        '<div><h2 style="margin:0">Historial</h2>'
        f'<p style="{_MUTED}">Visualiza, filtra y gestiona los movimientos.</p></div>'
        '<div style="display:flex;gap:8px">'
        f'<a href="{_e(config.NEW_MOVEMENT_ROUTE)}" style="{_BUTTON}">Registrar</a>'
        f"{csv_link}"
        "</div></div>"
    )


def render_filters(date_range, base, layout):
    start = date_range.start.isoformat() if date_range.start else ""
    end = date_range.end.isoformat() if date_range.end else ""
    start_label = format_day_es(date_range.start) if date_range.start else "Inicio"
    end_label = format_day_es(date_range.end) if date_range.end else "Fin"
    clear = ""
    if not date_range.is_open:
        clear = (
            f'<a href="{_e(base)}/view?all=1&amp;layout={layout}" style="{_BUTTON}" '
            'title="Limpiar filtros">&times;</a>'
        )
    return (
        f'<form method="get" action="{_e(base)}/view" style="display:flex;gap:8px;margin:16px 0">'
        f'<label>{_e(start_label)} <input type="date" name="start" value="{start}"></label>'
        f'<label>{_e(end_label)} <input type="date" name="end" value="{end}"></label>'
        f'<input type="hidden" name="layout" value="{layout}">'
        f'<button type="submit" style="{_BUTTON}">Filtrar</button>'
        f"{clear}</form>"
    )


def render_history(movements, date_range, tz, layout=LAYOUT_TABLE, base="/movements"):
    """Full history fragment: header, range filter and the chosen layout."""
    if layout == LAYOUT_CARDS:
        listing = render_cards(movements, tz, base)
    else:
        listing = render_table(movements, tz, base)
    return (
        '<div class="movement-history" style="font-family:sans-serif;padding:16px">'
        f"{render_header(movements, date_range, base)}"
        f"{render_filters(date_range, base, layout)}"
        f"{listing}"
        "</div>"
    )
