import base64
import json
import os
import requests

DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_API_HOST = "generativelanguage.googleapis.com"

# --- Padrão Singleton para o cliente HTTP (reaproveita conexões no Warm Start) ---
_HTTP_SESSION = None

def get_http_session():
    global _HTTP_SESSION
    if _HTTP_SESSION is None:
        _HTTP_SESSION = requests.Session()
    return _HTTP_SESSION

def _response(status_code, body, headers=None):
    return {
        "statusCode": status_code,
        "headers": headers or {"Content-Type": "text/plain"},
        "body": body
    }

def _get_method(event):
    # API Gateway REST (v1) usa httpMethod; HTTP API (v2) e Function URL usam requestContext.http
    method = event.get("httpMethod")
    if not method:
        http = (event.get("requestContext") or {}).get("http") or {}
        method = http.get("method") or ""
    return method.upper()

def _read_body(event):
    body = event.get("body")
    if body is not None and event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return json.loads(body)

def _redact(text, secret):
    # A URL da requisição (com ?key=) aparece nas mensagens de erro do requests
    return text.replace(secret, "***") if secret else text

def build_payload(prompt, system_prompt=None):
    """
    Monta o corpo do generateContent.
    O systemInstruction vai sempre, com texto vazio quando não houver systemPrompt.
    """
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "systemInstruction": {
            "parts": [{"text": system_prompt or ""}]
        },
    }

def build_api_url(model=None, host=None):
    model = model or os.environ.get("GEMINI_MODEL") or DEFAULT_MODEL
    host = host or os.environ.get("GEMINI_API_HOST") or DEFAULT_API_HOST
    return f"https://{host}/v1beta/models/{model}:generateContent"

def lambda_handler(event, context, http_client=None):
    """
    Proxy seguro entre o frontend público e a API do Gemini.
    A chave fica só no ambiente da Lambda; o cliente manda apenas o prompt.

    Args:
        http_client: Sessão HTTP opcional (injeção de dependência para testes).
    """
    # 1. Só aceitamos POST
    if _get_method(event) != "POST":
        return _response(405, "Method Not Allowed", {"Content-Type": "text/plain", "Allow": "POST"})

    # 2. Parsing do Input
    try:
        body = _read_body(event)
    except (TypeError, ValueError):
        # JSONDecodeError, UnicodeDecodeError e binascii.Error herdam de ValueError
        return _response(400, "Bad Request: Invalid JSON.")

    if not isinstance(body, dict) or not body.get("prompt"):
        return _response(400, 'Bad Request: "prompt" is required.')

    prompt = body["prompt"]
    system_prompt = body.get("systemPrompt")

    # 3. Chave secreta (lida a cada invocação)
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        # Erro do servidor: detalhe só no log, nunca na resposta
        print("ERRO: GEMINI_API_KEY is not set in the Lambda environment.")
        return _response(500, "Internal Server Error: API configuration missing.")

    client = http_client if http_client else get_http_session()
    api_url = build_api_url()
    payload = build_payload(prompt, system_prompt)

    print(f"Chamando Gemini: {api_url} (prompt com {len(str(prompt))} caracteres)")

    # 4. Chamada à API do Gemini
    try:
        response = client.post(
            api_url,
            params={"key": api_key},
            headers={"Content-Type": "application/json"},
            data=json.dumps(payload)
        )

        if not response.ok:
            error_text = _redact(response.text, api_key)
            print(f"ERRO Gemini API: {response.status_code} {error_text}")
            return _response(response.status_code, f"Gemini API Error: {error_text}")

        result = response.json()
        candidates = result.get("candidates") or []

        if not candidates:
            return _response(500, "Gemini API returned no candidates.")

        # Parte sem texto (ex.: functionCall) devolve {} em vez de estourar KeyError
        text = candidates[0]["content"]["parts"][0].get("text")

        # 5. Devolve só o texto para o app
        return {
            "statusCode": 200,
            "headers": {
                "Content-Type": "application/json",
                "Access-Control-Allow-Origin": "*"
            },
            "body": json.dumps({"text": text} if text is not None else {})
        }

    except Exception as e:
        message = _redact(str(e), api_key)
        print(f"ERRO ao chamar Gemini: {message}")
        return _response(500, f"Internal Server Error: {message}")
