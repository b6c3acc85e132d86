from __future__ import annotations

from datetime import tzinfo
from typing import Optional

from flask import Flask, jsonify

from ..common.http import error_response
from ..core.exceptions import DomainError
from ..members.controller import member_to_dict
from .clock import format_hms
from .engine import PunchOutcome
from .model import Interval


def _iso(value, tz: tzinfo) -> Optional[str]:
    return value.astimezone(tz).isoformat() if value is not None else None


def interval_to_dict(interval: Interval, tz: tzinfo) -> dict:
    return {
        "interval_id": interval.interval_id,
        "member_id": interval.member_id,
        "punch_in": _iso(interval.punch_in, tz),
        "punch_out": _iso(interval.punch_out, tz),
        "open": interval.is_open,
    }


def register(app: Flask, container) -> None:
    tz = container.display_tz

    def _punch_response(outcome: PunchOutcome, *, created: bool):
        if not outcome.ok:
            return error_response(outcome.error)
        return jsonify({"success": True, "interval": interval_to_dict(outcome.interval, tz)}), (201 if created else 200)

    @app.route("/api/members/<int:member_id>/punch-in", methods=["POST"], endpoint="punch_in")
    async def punch_in(member_id: int):
        try:
            async with container.sessions() as s:
                outcome = await s.ensure_synced().punch_in(member_id)
        except DomainError as e:
            return error_response(e)
        return _punch_response(outcome, created=True)

    @app.route("/api/members/<int:member_id>/punch-out", methods=["POST"], endpoint="punch_out")
    async def punch_out(member_id: int):
        try:
            async with container.sessions() as s:
                outcome = await s.ensure_synced().punch_out(member_id)
        except DomainError as e:
            return error_response(e)
        return _punch_response(outcome, created=False)

    @app.route("/api/members/<int:member_id>/status", methods=["GET"], endpoint="member_status")
    async def member_status(member_id: int):
        try:
            async with container.sessions() as s:
                view = s.ensure_synced().presence(member_id)
        except DomainError as e:
            return error_response(e)
        return jsonify(
            {
                "success": True,
                "member_id": member_id,
                "status": view.status.value,
                "interval": interval_to_dict(view.interval, tz) if view.interval else None,
                "elapsed_ms": view.elapsed_ms,
                "elapsed": format_hms(view.elapsed_ms),
            }
        )

    @app.route("/api/board", methods=["GET"], endpoint="board")
    async def board():
        """Dashboard data: every member with presence and live break duration."""
        try:
            members = await container.roster_service.list_members()
            async with container.sessions() as s:
                s.ensure_synced()
                views = [(m, s.presence(m.member_id)) for m in members]
        except DomainError as e:
            return error_response(e)

        return jsonify(
            {
                "success": True,
                "members": [
                    {
                        **member_to_dict(m),
                        "status": v.status.value,
                        "elapsed_ms": v.elapsed_ms,
                        "elapsed": format_hms(v.elapsed_ms),
                    }
                    for m, v in views
                ],
            }
        )
