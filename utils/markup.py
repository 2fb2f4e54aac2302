"""
Único trecho de markup confiável permitido em mensagens: o link de
correção de categorias ausentes. Todo o resto do conteúdo é texto inerte.
"""

import html
import re
from typing import Optional, Tuple
from urllib.parse import quote, urlparse

CATEGORY_ERROR_PREFIX = "CATEGORY_ERROR::"
DEFAULT_LINK_LABEL = "Manage categories"

_LINK_PATTERN = re.compile(r'<a href="(?P<href>[^"<>]+)">(?P<label>[^<>]+)</a>')


def _is_safe_href(href: str) -> bool:
    """Aceita caminhos relativos à aplicação ou URLs http(s)"""
    if href.startswith("/"):
        return not href.startswith("//")

    parsed = urlparse(href)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def remediation_href(url_template: str, tracker_id: str) -> str:
    """Montar o destino do link para a tela de categorias do tracker"""
    href = url_template.format(tracker_id=quote(tracker_id, safe=""))
    if not _is_safe_href(href):
        raise ValueError(f"Destino de link não permitido: {href}")
    return href


def build_remediation_content(message: str, href: str, label: str = DEFAULT_LINK_LABEL) -> str:
    """Envolver a mensagem com o prefixo sentinela e um único link"""
    if not _is_safe_href(href):
        raise ValueError(f"Destino de link não permitido: {href}")

    return (
        f"{CATEGORY_ERROR_PREFIX}{html.escape(message, quote=False)} "
        f'<a href="{html.escape(href)}">{html.escape(label, quote=False)}</a>'
    )


def split_remediation_content(content: str) -> Optional[Tuple[str, str, str]]:
    """
    Validar conteúdo com link de correção.

    Retorna (texto, href, rótulo) somente quando o conteúdo tem o prefixo
    sentinela, exatamente um link com destino permitido e nenhum outro markup.
    """
    if not content.startswith(CATEGORY_ERROR_PREFIX):
        return None

    body = content[len(CATEGORY_ERROR_PREFIX):]
    links = list(_LINK_PATTERN.finditer(body))
    if len(links) != 1:
        return None

    remaining = _LINK_PATTERN.sub("", body)
    if "<" in remaining or ">" in remaining:
        return None

    match = links[0]
    href = html.unescape(match.group("href"))
    if not _is_safe_href(href):
        return None

    text = html.unescape(remaining).strip()
    return text, href, html.unescape(match.group("label"))


def is_remediation_content(content: str) -> bool:
    return split_remediation_content(content) is not None


def strip_sentinel(content: str) -> str:
    """Remover o prefixo interno antes de exibir"""
    if content.startswith(CATEGORY_ERROR_PREFIX):
        return content[len(CATEGORY_ERROR_PREFIX):]
    return content
