"""
Container Movements
===================

Live history of container movements stored in Firestore.

Modules:
- models: Movement record and snapshot decoding
- photo_overrides: local photo URL overrides (two-tier read path)
- events: photo-saved bus
- notifier: non-blocking user notifications
- sync: realtime listener on the movements collection
- filters: date range filtering, current-week default
- csv_export: CSV of the filtered view
- actions: edit / delete / photo row actions
- render: card and table HTML
- history: MovementHistory, the screen as one object
- api: HTTP routing

Usage:
    from movements.history import MovementHistory
    from movements.photo_overrides import JsonFilePhotoOverrides
"""

__version__ = "1.0.0"
