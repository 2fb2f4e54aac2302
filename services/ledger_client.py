"""
Cliente HTTP da API do ledger (interpretação, lançamentos e categorias)
"""

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from config.settings import Settings, get_settings


class LedgerClientError(Exception):
    """Erro na fronteira REST do ledger"""


class LedgerTransportError(LedgerClientError):
    """Nenhuma resposta alcançável (conexão, timeout)"""


class LedgerApiError(LedgerClientError):
    """Resposta recebida com status de erro"""

    def __init__(self, status_code: int, payload: Dict[str, Any]):
        message = payload.get("message") or payload.get("error") or f"HTTP {status_code}"
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def unwrap_payload(body: Any) -> Dict[str, Any]:
    """Extrair o conteúdo útil do envelope {success, data, message}"""
    if not isinstance(body, dict):
        return {}

    data = body.get("data")
    if isinstance(data, dict):
        payload = dict(data)
        for key in ("message", "error"):
            if key not in payload and key in body:
                payload[key] = body[key]
        return payload

    return dict(body)


class LedgerApiClient:
    """Cliente assíncrono da API do ledger"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.api_base_url.rstrip("/")
        self.timeout = httpx.Timeout(self.settings.request_timeout, connect=self.settings.connect_timeout)
        self._token = token if token is not None else self.settings.api_token
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def set_token(self, token: Optional[str]):
        """Trocar o token da sessão (troca de conta)"""
        self._token = token
        if self._http_client is not None:
            self._http_client.headers.pop("Authorization", None)
            if token:
                self._http_client.headers["Authorization"] = f"Bearer {token}"

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Executar requisição e devolver o payload já desembrulhado"""
        client = await self._get_http_client()

        try:
            response = await client.request(method, path, json=json_data, params=params)
        except httpx.TransportError as e:
            logger.error(f"❌ Sem resposta de {method} {path}: {e}")
            raise LedgerTransportError(str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        payload = unwrap_payload(body)

        if response.is_error:
            logger.warning(f"⚠️ {method} {path} retornou {response.status_code}")
            raise LedgerApiError(response.status_code, payload)

        return payload

    async def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", path, json_data=payload)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("GET", path, params=params)
