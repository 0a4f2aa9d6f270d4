import logging
from unittest.mock import Mock

from priceguide.auth import Principal
from priceguide.enums import CategoryType
from priceguide.services.audit import AuditSink, diff


class TestAuditSink:

    def test_emit_writes_structured_record(self):
        sink = Mock(spec=logging.Logger)
        principal = Principal(user_id=3, company_id=4)

        AuditSink(sink).emit("category.created", principal, "abc", after={"name": "Roofing"}, force=False)

        args, kwargs = sink.info.call_args
        assert args == ("category.created",)
        record = kwargs["extra"]["audit"]
        assert record["actor_id"] == 3
        assert record["company_id"] == 4
        assert record["entity_id"] == "abc"
        assert record["after"] == {"name": "Roofing"}
        assert record["force"] is False

    def test_failing_sink_does_not_raise(self, caplog):
        sink = Mock(spec=logging.Logger)
        sink.info.side_effect = RuntimeError("sink unavailable")

        with caplog.at_level(logging.WARNING):
            AuditSink(sink).emit("category.deleted", Principal(user_id=1, company_id=1), "abc")

        assert "Failed to emit audit event category.deleted" in caplog.text


def test_diff_reports_changed_fields_only():
    before = {"name": "Roofing", "depth": 0, "category_type": CategoryType.DETAIL}
    after = {"name": "Roofing Systems", "depth": 0, "category_type": CategoryType.DEFAULT}

    assert diff(before, after) == {
        "name": {"from": "Roofing", "to": "Roofing Systems"},
        "category_type": {"from": "detail", "to": "default"},
    }
