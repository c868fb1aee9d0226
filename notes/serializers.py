from datetime import date, datetime, time, timezone

from rest_framework import serializers

from .models import SENSITIVE_FIELDS, iso_now, parse_iso

ENCRYPTED_PLACEHOLDER = "[Encrypted]"


class NoteEditSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    description = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    comments = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    tags = serializers.CharField(required=False, allow_blank=True)
    system = serializers.CharField(required=False, allow_blank=True)
    dueDate = serializers.CharField(source="due_date", required=False, allow_blank=True)

    def validate_tags(self, value):
        return ", ".join(t for t in (tag.strip() for tag in value.split(",")) if t)

    def validate_dueDate(self, value):
        value = value.strip()
        if not value:
            return ""
        try:
            day = date.fromisoformat(value)
        except ValueError:
            parsed = parse_iso(value)
            if parsed is None:
                raise serializers.ValidationError("Use YYYY-MM-DD or an ISO-8601 timestamp.")
            return iso_now(parsed)
        return iso_now(datetime.combine(day, time.min, tzinfo=timezone.utc))


class MoveSerializer(serializers.Serializer):
    direction = serializers.ChoiceField(choices=["up", "down"])


class NoteSerializer(serializers.BaseSerializer):
    def to_representation(self, instance):
        data = instance.to_wire()
        for name in SENSITIVE_FIELDS:
            if not isinstance(data[name], str) or name in instance.decrypt_errors:
                data[name] = ENCRYPTED_PLACEHOLDER
        raw_tags = (instance.tags or "").strip()
        data["tagList"] = [t for t in (tag.strip() for tag in raw_tags.split(",")) if t] if raw_tags else []
        data["decryptErrors"] = list(instance.decrypt_errors)
        return data


class BoardSerializer(serializers.BaseSerializer):
    """Render a ``BoardResult`` (snapshot plus push outcomes)."""

    def to_representation(self, instance):
        snapshot = instance.snapshot
        return {
            "active": NoteSerializer(snapshot.active, many=True).data,
            "done": NoteSerializer(snapshot.done, many=True).data,
            "query": snapshot.query,
            "systems": list(snapshot.systems),
            "counts": {
                "active": len(snapshot.active),
                "done": len(snapshot.done),
                "total": snapshot.total,
            },
            "status": snapshot.status,
            "failedUpdates": [
                {"id": note_id, "message": result.message} for note_id, result in instance.failures
            ],
        }
