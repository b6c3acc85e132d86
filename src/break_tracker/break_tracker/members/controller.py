from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import actor_is_admin, admin_required, error_response
from ..core.exceptions import DomainError
from .model import Member


def member_to_dict(member: Member) -> dict:
    return {
        "member_id": member.member_id,
        "name": member.name,
        "email": member.email,
        "is_admin": member.is_admin,
    }


def register(app: Flask, container) -> None:
    @app.route("/api/members", methods=["GET"], endpoint="list_members")
    async def list_members():
        try:
            members = await container.roster_service.list_members()
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "members": [member_to_dict(m) for m in members]})

    @app.route("/api/members", methods=["POST"], endpoint="add_member")
    @admin_required
    async def add_member():
        data = request.get_json(silent=True) or {}
        try:
            member = await container.roster_service.add_member(
                actor_is_admin=actor_is_admin(),
                name=str(data.get("name") or ""),
                email=data.get("email"),
                is_admin=bool(data.get("is_admin", False)),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "member": member_to_dict(member)}), 201

    @app.route("/api/members/<int:member_id>", methods=["DELETE"], endpoint="remove_member")
    @admin_required
    async def remove_member(member_id: int):
        try:
            await container.roster_service.remove_member(actor_is_admin=actor_is_admin(), member_id=member_id)
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True})
