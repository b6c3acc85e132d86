from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import actor_is_admin, admin_required, error_response
from ..core.exceptions import DomainError, ValidationError


def register(app: Flask, container) -> None:
    @app.route("/admin/report.csv", methods=["GET"], endpoint="admin_report_csv")
    @admin_required
    async def admin_report_csv():
        start_s = request.args.get("start")
        end_s = request.args.get("end")
        columns_s = request.args.get("columns")
        try:
            if not start_s or not end_s:
                raise ValidationError("Missing start/end parameters")
            start = parse_iso_date(start_s)
            end = parse_iso_date(end_s)
            columns = columns_s.split(",") if columns_s else None
            body = await container.export_service.export_csv(
                actor_is_admin=actor_is_admin(),
                start=start,
                end=end,
                columns=columns,
            )
        except DomainError as e:
            return error_response(e)

        filename = f"break_report_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return app.response_class(
            body.encode("utf-8"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
