import logging

from prompt_exporter.logging import (
    SafeStreamHandler,
    add_extension_name,
    redact_secret_processor,
    set_debug_gate,
    setup_logging,
)


class TestRedactSecretProcessor:
    def test_redacts_api_key_in_event(self) -> None:
        event_dict = {"event": "using key sk-abcdefghijklmnopqrstuvwx for request"}

        result = redact_secret_processor(None, "info", event_dict)

        assert "abcdefghijklmnop" not in result["event"]
        assert "sk-[REDACTED]" in result["event"]

    def test_redacts_bearer_token_in_fields(self) -> None:
        event_dict = {"event": "capture.snapshot", "header": "Bearer abc.def.ghijkl"}

        result = redact_secret_processor(None, "debug", event_dict)

        assert result["header"] == "Bearer [REDACTED]"

    def test_leaves_plain_values_alone(self) -> None:
        event_dict = {"event": "export.completed", "file_name": "prompt_struct_0.json", "n": 3}

        result = redact_secret_processor(None, "info", dict(event_dict))

        assert result == event_dict

    def test_short_sk_prefix_not_redacted(self) -> None:
        event_dict = {"event": "task-sk-1 done"}

        assert redact_secret_processor(None, "info", event_dict)["event"] == "task-sk-1 done"


def test_add_extension_name() -> None:
    assert add_extension_name(None, "info", {"event": "x"})["extension"] == "prompt-exporter"


def test_set_debug_gate() -> None:
    set_debug_gate(True)
    assert logging.getLogger("prompt_exporter").level == logging.DEBUG

    set_debug_gate(False)
    assert logging.getLogger("prompt_exporter").level == logging.INFO


def test_setup_logging_installs_safe_handler() -> None:
    setup_logging(debug=False)

    root = logging.getLogger()
    assert any(isinstance(h, SafeStreamHandler) for h in root.handlers)
    assert logging.getLogger("prompt_exporter").level == logging.INFO


def test_safe_stream_handler_swallows_broken_pipe() -> None:
    class _BrokenStream:
        closed = False

        def write(self, _data: str) -> None:
            raise BrokenPipeError()

        def flush(self) -> None:
            pass

        def close(self) -> None:
            self.closed = True

    stream = _BrokenStream()
    handler = SafeStreamHandler(stream)
    record = logging.LogRecord("test", logging.INFO, "", 0, "hello", (), None)

    handler.emit(record)

    assert stream.closed


def test_redacts_secrets_nested_in_payload() -> None:
    payload = {
        "headers": {"Authorization": "Bearer abcdefghijklmnop"},
        "key": "sk-aaaaaaaaaaaaaaaaaaaaaaaa",
        "messages": [{"content": "use sk-bbbbbbbbbbbbbbbbbbbbbbbb please"}, 3],
    }
    event_dict = {"event": "capture.snapshot", "payload": payload}

    result = redact_secret_processor(None, "debug", event_dict)

    assert result["payload"] == {
        "headers": {"Authorization": "Bearer [REDACTED]"},
        "key": "sk-[REDACTED]",
        "messages": [{"content": "use sk-[REDACTED] please"}, 3],
    }
    assert payload["key"] == "sk-aaaaaaaaaaaaaaaaaaaaaaaa"
    assert payload["headers"]["Authorization"] == "Bearer abcdefghijklmnop"


def test_redaction_handles_self_referencing_values() -> None:
    loop: dict = {"token": "Bearer abcdefghijklmnop"}
    loop["self"] = loop

    result = redact_secret_processor(None, "debug", {"event": "x", "value": loop})

    redacted = result["value"]
    assert redacted["token"] == "Bearer [REDACTED]"
    assert redacted["self"] is redacted
