"""``/notes`` — the visitor's notes.

    GET  /notes         list
    GET  /notes/<id>    one note
    POST /notes         create from ``{"title": ...}``
    POST /notes/clear   delete all, then back to the list
"""

import json

from burrow import RouteUnit, handles
from burrow.http import quick


class Notes(RouteUnit):
    def _notes(self) -> list[dict]:
        return list(self.session.get("notes") or [])

    @handles()
    async def show(self, note_id=None, *rest):
        notes = self._notes()
        if note_id is None:
            return {"notes": notes}
        for note in notes:
            if str(note["id"]) == note_id:
                return note
        return quick.not_found({"error": f"No note {note_id}"})

    @handles(method="post")
    async def create(self):
        try:
            payload = json.loads(self.request.body or b"{}")
        except ValueError:
            return quick.unprocessable_content({"error": "Body must be JSON"})
        title = str(payload.get("title", "")).strip() if isinstance(payload, dict) else ""
        if not title:
            return quick.unprocessable_content({"error": "'title' is required"})

        notes = self._notes()
        note = {"id": len(notes) + 1, "title": title}
        self.session.set("notes", [*notes, note])
        return note

    @handles("clear", method="post")
    async def clear(self):
        self.session.set("notes", [])
        return quick.redirect("/notes")
