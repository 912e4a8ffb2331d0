"""
schemas.py

Schemas Pydantic dos payloads Aliyun e fogcloud, mais a codificação
usada no transporte (JSON compacto + base64).
Compatível com Pydantic v2.
"""

import base64
import json
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fog_uplink_bridge.utils.logger import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class FogPayload(BaseModel):
    """
    Payload no schema fogcloud:

        {
          "id": 123,
          "version": "1.0",
          "method": "thing.event.property.post",
          "timestamp": 1746085310003,
          "params": {"temperature": 21.5}
        }

    `method` é omitido do JSON quando vazio.
    """

    id: int = 0
    version: str = ""
    method: str = ""
    timestamp: int = 0
    params: Dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        dados = self.model_dump()
        if not dados["method"]:
            del dados["method"]
        return dados


class AliyunPayload(BaseModel):
    """
    Payload no schema Aliyun (Alink JSON):

        {
          "id": "123",
          "version": "1.0",
          "params": {"temperature": 21.5},
          "method": "thing.event.property.post"
        }
    """

    # Alguns SDKs mandam o id como número; aceitamos e guardamos como string.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = ""
    version: str = ""
    params: Dict[str, Any] = Field(default_factory=dict)
    method: str = ""

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump()


def _rejeitar_constante(nome: str):
    # NaN/Infinity não são JSON válido; não podem seguir para o destino.
    raise ValueError(f"constante não suportada em JSON: {nome}")


def decode_payload(model: Type[M], raw_payload: str) -> M:
    """
    Decodifica `raw_payload` no schema `model`, de forma tolerante.

    Regras:
    - JSON inválido (inclusive NaN/Infinity) ou que não seja objeto →
      modelo com valores padrão.
    - Campos que não passam na validação são descartados e ficam com o
      valor padrão (zero value); os demais são aproveitados.
    - Nunca levanta exceção: um payload malformado não derruba a tradução.
    """
    try:
        dados = json.loads(raw_payload, parse_constant=_rejeitar_constante)
    except (TypeError, ValueError) as exc:
        logger.warning("Payload não é um JSON válido: %s", exc)
        return model()

    if not isinstance(dados, dict):
        logger.warning("Payload inválido: esperado um objeto JSON.")
        return model()

    try:
        return model.model_validate(dados)
    except ValidationError as exc:
        invalidos = {erro["loc"][0] for erro in exc.errors() if erro["loc"]}
        logger.warning(
            "Campos inválidos em %s ignorados: %s",
            model.__name__,
            sorted(str(campo) for campo in invalidos),
        )

    aproveitaveis = {k: v for k, v in dados.items() if k not in invalidos}
    return model.model_validate(aproveitaveis)


def encode_payload(payload: BaseModel) -> str:
    """
    Serializa o payload em JSON compacto e aplica base64 padrão,
    para que caiba como string em um envelope JSON.
    """
    if hasattr(payload, "to_wire"):
        dados = payload.to_wire()
    else:
        dados = payload.model_dump()
    texto = json.dumps(dados, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return base64.b64encode(texto.encode("utf-8")).decode("ascii")


def decode_wire(encoded: str) -> Dict[str, Any]:
    """
    Inverso de `encode_payload`: base64 → objeto JSON.
    """
    return json.loads(base64.b64decode(encoded).decode("utf-8"))


# ---------------- ENVELOPES HTTP ---------------- #


class UplinkRequest(BaseModel):
    """
    Requisição de tradução recebida pela API.

    `username` é opcional e segue o formato MQTT 'deviceName&productKey';
    só é usado quando product_key/device_name não vierem preenchidos.
    """

    raw_topic: str = ""
    raw_payload: str = ""
    device_name: str = ""
    product_key: str = ""
    device_id: str = ""
    username: str = ""


class UplinkResponse(BaseModel):
    fog_topic: str
    fog_payload: str


