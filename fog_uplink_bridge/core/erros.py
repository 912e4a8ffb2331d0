"""
erros.py

Taxonomia de erros da tradução de uplink.

Cada erro carrega um `kind` estável (p.ex. "InvalidTopic") que a camada
HTTP devolve no corpo da resposta, para que o chamador consiga distinguir
entrada malformada de tópico não suportado.
"""

from typing import Dict


class TranslationError(Exception):
    """
    Erro base da tradução. Nunca é levantado diretamente.
    """

    kind = "TranslationError"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.kind)
        self.detail = detail or self.kind

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.kind, "detail": self.detail}


class EmptyInputError(TranslationError):
    """Tópico ou payload vazio; rejeitado antes do casamento."""

    kind = "EmptyInput"


class InvalidTopicError(TranslationError):
    """Nenhum padrão registrado casa com o tópico."""

    kind = "InvalidTopic"


class MalformedParamsError(TranslationError):
    """Quantidade de parâmetros diferente da esperada pela regra."""

    kind = "MalformedParams"


class UnsupportedPatternError(TranslationError):
    """O tópico casou com um padrão registrado que não tem regra de tradução."""

    kind = "UnsupportedPattern"


class InvalidUsernameError(TranslationError):
    """Username fora do formato 'deviceName&productKey'."""

    kind = "InvalidUsername"


class MalformedRequestError(TranslationError):
    """Corpo da requisição HTTP não é JSON válido ou tem campos com tipo errado."""

    kind = "MalformedRequest"
