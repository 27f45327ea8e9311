import json
import pytest
from unittest.mock import MagicMock

FAKE_API_KEY = "AIza-test-secret-key-123"

@pytest.fixture(scope="function")
def gemini_env(monkeypatch):
    """Variáveis de ambiente da Lambda, com uma chave falsa."""
    monkeypatch.setenv("GEMINI_API_KEY", FAKE_API_KEY)
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    monkeypatch.delenv("GEMINI_API_HOST", raising=False)
    return FAKE_API_KEY

@pytest.fixture(scope="function")
def make_upstream_response():
    """
    Fábrica de respostas falsas do Gemini (simula o objeto Response do requests).
    """
    def _make(status_code=200, json_body=None, text=None):
        response = MagicMock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 400
        response.text = text if text is not None else json.dumps(json_body or {})
        response.json.return_value = json_body
        return response
    return _make

@pytest.fixture(scope="function")
def http_client(make_upstream_response):
    """Sessão HTTP mockada que devolve um candidato com o texto 'world'."""
    client = MagicMock()
    client.post.return_value = make_upstream_response(json_body={
        "candidates": [
            {"content": {"parts": [{"text": "world"}], "role": "model"}}
        ]
    })
    return client

@pytest.fixture(scope="function")
def make_event():
    """Fábrica de eventos no formato do API Gateway (REST / payload v1)."""
    def _make(body=None, method="POST", raw_body=None):
        return {
            "httpMethod": method,
            "body": raw_body if raw_body is not None else json.dumps(body),
            "isBase64Encoded": False
        }
    return _make
