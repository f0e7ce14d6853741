from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..auth.decorators import current_teacher
from ..common.datetime_utils import parse_optional_date
from ..common.datetime_utils import today as current_date
from ..common.validators import optional_int
from ..container import Container
from ..core.exceptions import AbsenceAlertError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/absence-alerts", endpoint="api_absence_alerts")
    def api_absence_alerts():
        if current_teacher() is None:
            return jsonify({"error": "unauthenticated"}), 401

        try:
            cutoff = parse_optional_date(request.args.get("date")) or current_date()
            threshold = optional_int(request.args.get("threshold"))
            alerts = container.alert_service.alerts_for_active_students(threshold=threshold, cutoff=cutoff)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except AbsenceAlertError as e:
            logger.error("Absence alert API failed: %s", e)
            return jsonify({"error": "Não foi possível calcular os alertas de falta."}), 503

        return jsonify(
            {
                "cutoff": cutoff.isoformat(),
                "count": len(alerts),
                "alerts": [a.to_dict() for a in alerts],
            }
        )
