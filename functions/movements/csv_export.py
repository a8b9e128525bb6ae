"""
CSV export of the filtered movement history.

Header and row layout are fixed::

    chofer,placa,fecha,tipo de movimiento,contenedor
    Juan,ABC123,2024-06-03,"Port -> Yard (In Transit)",CONT1
"""

from dataclasses import dataclass

from movements.filters import local_datetime

CSV_HEADERS = ["chofer", "placa", "fecha", "tipo de movimiento", "contenedor"]
CSV_FILENAME = "movimientos_contenedores.csv"
CSV_CONTENT_TYPE = "text/csv;charset=utf-8;"

_NEEDS_QUOTES = (",", '"', "\n", "\r")


@dataclass
class CsvExport:
    filename: str
    content: str
    row_count: int
    content_type: str = CSV_CONTENT_TYPE


def movement_type(m):
    return f"{m.origin} -> {m.destination} ({m.status})"


def _quote(value):
    return '"' + value.replace('"', '""') + '"'


def _field(value):
    value = "" if value is None else str(value)
    if any(ch in value for ch in _NEEDS_QUOTES):
        return _quote(value)
    return value


def build_row(m, tz):
    fecha = local_datetime(m.date, tz).strftime("%Y-%m-%d")
    return ",".join([
        _field(m.driver),
        _field(m.plate),
        fecha,
        _quote(movement_type(m)),
        _field(m.container),
    ])


def build_csv(movements, tz):
    """CsvExport for ``movements``, or None when there is nothing to export."""
    movements = list(movements)
    if not movements:
        return None
    lines = [",".join(CSV_HEADERS)]
    lines.extend(build_row(m, tz) for m in movements)
    return CsvExport(filename=CSV_FILENAME, content="\n".join(lines), row_count=len(movements))
