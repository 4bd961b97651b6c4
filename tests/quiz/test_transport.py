from __future__ import annotations

import logging

import httpx
import pytest

from fixtures import ScriptedTransport, make_envelope
from neet_quiz.core.logging import configure_logger
from neet_quiz.quiz import transport
from neet_quiz.quiz.encoder import UploadedFile
from neet_quiz.quiz.errors import MalformedResponseError, TransportExhaustedError
from neet_quiz.quiz.prompt import build_request

ENDPOINT = "https://example.test/v1beta/models/m:generateContent"


def _request():
    return build_request([UploadedFile.from_bytes("a.png", b"img")], 2)


def _client(script, sleeper, **kwargs):
    return transport.GenerationClient(
        endpoint=ENDPOINT,
        api_key="secret-key",
        http_client=script.client(),
        sleep=sleeper,
        **kwargs,
    )


def test_backoff_delay_doubles_from_base():
    assert [transport.backoff_delay(k) for k in range(1, 5)] == [
        0.2,
        0.4,
        0.8,
        1.6,
    ]
    assert transport.backoff_delay(2, base_delay_ms=50) == 0.2


def test_first_success_returns_without_sleeping(sleeper):
    envelope = make_envelope()
    script = ScriptedTransport([httpx.Response(200, json=envelope)])

    body = _client(script, sleeper).send(_request())

    assert body == envelope
    assert script.calls == 1
    assert sleeper.delays == []


def test_retries_until_success(sleeper):
    script = ScriptedTransport(
        [
            httpx.Response(500),
            httpx.Response(503),
            httpx.Response(200, json=make_envelope()),
        ]
    )

    _client(script, sleeper).send(_request())

    assert script.calls == 3
    assert sleeper.delays == [0.2, 0.4]


def test_exhaustion_after_max_attempts(sleeper):
    script = ScriptedTransport([httpx.Response(500)])

    with pytest.raises(TransportExhaustedError) as excinfo:
        _client(script, sleeper).send(_request())

    assert script.calls == 5
    assert sleeper.delays == [0.2, 0.4, 0.8, 1.6]
    assert excinfo.value.attempts == 5
    assert isinstance(excinfo.value.last_cause, httpx.HTTPStatusError)
    assert excinfo.value.__cause__ is excinfo.value.last_cause


def test_exhaustion_log_masks_api_key(sleeper, tmp_path):
    configure_logger("neet_quiz", log_dir=tmp_path, secrets=("secret-key",))
    script = ScriptedTransport([httpx.Response(500)])

    with pytest.raises(TransportExhaustedError):
        _client(script, sleeper).send(_request())

    for handler in logging.getLogger("neet_quiz").handlers:
        handler.flush()
    text = (tmp_path / "neet_quiz.log").read_text(encoding="utf-8")
    assert "Generation request failed after retries" in text
    assert "secret-key" not in text


def test_network_errors_count_as_failed_attempts(sleeper):
    script = ScriptedTransport(
        [
            httpx.ConnectError("refused"),
            httpx.Response(200, json=make_envelope()),
        ]
    )

    _client(script, sleeper).send(_request())

    assert script.calls == 2
    assert sleeper.delays == [0.2]


def test_custom_attempt_limit(sleeper):
    script = ScriptedTransport([httpx.ReadTimeout("slow")])

    with pytest.raises(TransportExhaustedError):
        _client(script, sleeper, max_attempts=2, base_delay_ms=10).send(
            _request()
        )

    assert script.calls == 2
    assert sleeper.delays == [0.02]


def test_request_carries_key_and_payload(sleeper):
    script = ScriptedTransport([httpx.Response(200, json=make_envelope())])
    request = _request()

    _client(script, sleeper).send(request)

    sent = script.requests[0]
    assert sent.method == "POST"
    assert sent.url.params["key"] == "secret-key"
    assert sent.url.path.endswith("/models/m:generateContent")
    assert script.sent_payload() == request.to_payload()


def test_non_json_success_body_is_malformed(sleeper):
    script = ScriptedTransport([httpx.Response(200, text="<html>")])

    with pytest.raises(MalformedResponseError):
        _client(script, sleeper).send(_request())
    assert script.calls == 1


def test_non_object_success_body_is_malformed(sleeper):
    script = ScriptedTransport([httpx.Response(200, json=[1, 2])])

    with pytest.raises(MalformedResponseError):
        _client(script, sleeper).send(_request())


def test_rejects_non_positive_attempts():
    with pytest.raises(ValueError):
        transport.GenerationClient(
            endpoint=ENDPOINT, api_key="k", max_attempts=0
        )


def test_attempt_outcome_ok():
    assert transport.AttemptOutcome(1, response=httpx.Response(200)).ok
    assert not transport.AttemptOutcome(1, error=RuntimeError("x")).ok
