"""
HTTP routing for the movement history.

Endpoints (relative to the function root, optional ``api/`` prefix)::

    GET         movements                       filtered movements as JSON
    GET         movements/view                  HTML history (cards or table by ?width=)
    GET         movements/export.csv            CSV of the filtered view (204 when empty)
    GET         movements/<id>/edit             302 to the edit flow
    POST|DELETE movements/<id>[/delete]         delete, needs confirm=true
    GET         movements/<id>/photo/attach     302 to the photo upload flow
    GET         movements/<id>/photo            302 to the photo
    GET         movements/<id>/photo/download   photo as foto_<container>.jpg
    POST        movements/<id>/photo            record a saved photo {"photoUrl": ...}
    GET         notifications                   pending notifications (drained)
    GET         health
"""

import json
import logging

from firebase_functions import https_fn

from movements.actions import DELETE_PROMPT
from movements.filters import DateRange, parse_date
from movements.models import MovementNotFound
from movements.render import LAYOUT_CARDS, LAYOUT_TABLE, choose_layout

logger = logging.getLogger("movements.api")

_TRUE_VALUES = ("1", "true", "yes", "si", "sí")


def _json(payload, status=200):
    return https_fn.Response(
        json.dumps(payload, default=str, ensure_ascii=False),
        status=status,
        content_type="application/json",
    )


def _redirect(location):
    return https_fn.Response("", status=302, headers={"Location": location})


def _is_true(value):
    return str(value or "").strip().lower() in _TRUE_VALUES


def _param(req, name):
    value = req.args.get(name) if req.args is not None else None
    if value is None and getattr(req, "form", None):
        value = req.form.get(name)
    if value is None:
        body = req.get_json(silent=True) if hasattr(req, "get_json") else None
        if isinstance(body, dict) and name in body:
            value = body.get(name)
    return value


def _request_range(req, history):
    """Range for this request only: ``all=1`` is open, ``start``/``end`` as given, else the current week."""
    args = req.args or {}
    if _is_true(args.get("all")):
        return DateRange()
    if "start" in args or "end" in args:
        return DateRange(parse_date(args.get("start")), parse_date(args.get("end")))
    return history.default_range()


def _layout(req):
    args = req.args or {}
    layout = args.get("layout")
    if layout in (LAYOUT_CARDS, LAYOUT_TABLE):
        return layout
    width = args.get("width")
    try:
        return choose_layout(int(width) if width else None)
    except ValueError:
        return choose_layout(None)


def route_request(req, history, base="/movements"):
    """Dispatch one request against ``history``. Always returns a Response."""
    path = req.path.strip("/") if req.path else ""
    if path.startswith("api/"):
        path = path[len("api/"):]
    parts = [p for p in path.split("/") if p]
    method = req.method

    try:
        if not parts or parts == ["health"]:
            return _json({"status": "ok", "service": "movements", "listening": history.sync.is_running})

        if parts == ["notifications"] and method == "GET":
            return _json([n.to_dict() for n in history.notifier.drain()])

        if parts[0] != "movements":
            return _json({"error": "Not found"}, status=404)

        return _route_movements(req, history, parts[1:], method, base)
    except MovementNotFound as e:
        return _json({"error": "Movement not found", "id": e.args[0] if e.args else None}, status=404)
    except ValueError as e:
        return _json({"error": f"Invalid request: {e}"}, status=400)
    except Exception as e:
        logger.error(f"{method} {req.path} failed: {e}")
        return _json({"error": str(e)}, status=500)


def _route_movements(req, history, rest, method, base):
    if not rest and method == "GET":
        date_range = _request_range(req, history)
        return _json({
            "range": date_range.to_dict(),
            "movements": [m.to_dict() for m in history.filtered(date_range)],
        })

    if rest == ["view"] and method == "GET":
        body = history.render(layout=_layout(req), base=base, date_range=_request_range(req, history))
        return https_fn.Response(body, content_type="text/html; charset=utf-8")

    if rest == ["export.csv"] and method == "GET":
        export = history.export_csv(_request_range(req, history))
        if export is None:
            return https_fn.Response("", status=204)
        return https_fn.Response(
            export.content,
            content_type=export.content_type,
            headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
        )

    movement_id, action = rest[0], "/".join(rest[1:])

    if action == "edit" and method == "GET":
        return _redirect(history.edit_url(movement_id))

    if (action == "" and method == "DELETE") or (action == "delete" and method == "POST"):
        if not history.delete(movement_id, confirmed=_is_true(_param(req, "confirm"))):
            return _json({"deleted": False, "confirm": DELETE_PROMPT}, status=409)
        return _json({"deleted": True, "id": movement_id})

    if action == "photo/attach" and method == "GET":
        return _redirect(history.attach_photo_url(movement_id))

    if action == "photo" and method == "GET":
        url = history.view_photo_url(movement_id)
        if not url:
            return _json({"error": "No photo"}, status=404)
        return _redirect(url)

    if action == "photo" and method == "POST":
        photo_url = _param(req, "photoUrl")
        if not photo_url:
            return _json({"error": "photoUrl required"}, status=400)
        history.save_photo(movement_id, photo_url)
        return _json({"ok": True, "id": movement_id})

    if action == "photo/download" and method == "GET":
        if not history.view_photo_url(movement_id):
            return _json({"error": "No photo"}, status=404)
        download = history.download_photo(movement_id)
        if download is None:
            return _json({"error": "No se pudo descargar la foto."}, status=502)
        return https_fn.Response(
            download.content,
            content_type=download.content_type,
            headers={"Content-Disposition": f'attachment; filename="{download.filename}"'},
        )

    return _json({"error": "Not found"}, status=404)
