"""
schemas.py

Modelos Pydantic usados apenas nas respostas de erro da API.
Os envelopes de requisição/resposta da tradução ficam em core.schemas.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """
    Corpo das respostas 400. `error` preserva o tipo do erro de tradução
    (EmptyInput, InvalidTopic, MalformedParams, UnsupportedPattern,
    InvalidUsername, MalformedRequest).
    """

    error: str
    detail: str
