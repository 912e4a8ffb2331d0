"""
Testes da decodificação tolerante e da codificação de payloads.

Objetivos:
- JSON inválido ou que não seja objeto vira modelo com valores padrão.
- Campo com tipo errado cai no valor padrão sem perder os outros.
- A codificação é JSON compacto em base64 e omite `method` vazio no fog.
"""

import base64
import json
import math

import pytest

from fog_uplink_bridge.core.schemas import (
    AliyunPayload,
    FogPayload,
    UplinkRequest,
    decode_payload,
    decode_wire,
    encode_payload,
)


def test_decode_json_invalido_retorna_padrao():
    payload = decode_payload(AliyunPayload, "{não é json}")

    assert payload == AliyunPayload()


def test_decode_nao_objeto_retorna_padrao():
    assert decode_payload(FogPayload, "[1, 2, 3]") == FogPayload()
    assert decode_payload(FogPayload, '"texto"') == FogPayload()


def test_decode_campo_invalido_cai_no_padrao():
    raw = json.dumps({"id": "abc", "version": "1.0", "timestamp": 10, "params": {"a": 1}})

    payload = decode_payload(FogPayload, raw)

    assert payload.id == 0
    assert payload.version == "1.0"
    assert payload.timestamp == 10
    assert payload.params == {"a": 1}


def test_decode_params_que_nao_sao_objeto():
    raw = json.dumps({"id": "1", "version": "1.0", "params": [1, 2]})

    payload = decode_payload(AliyunPayload, raw)

    assert payload.params == {}
    assert payload.version == "1.0"


def test_decode_aliyun_id_numerico_vira_string():
    payload = decode_payload(AliyunPayload, '{"id": 123, "version": "1.0"}')

    assert payload.id == "123"


def test_decode_ignora_campos_desconhecidos():
    payload = decode_payload(AliyunPayload, '{"id": "1", "sys": {"ack": 0}}')

    assert payload.id == "1"


def test_encode_json_compacto_em_base64():
    fog = FogPayload(id=1, version="1.0", timestamp=5, params={"t": 2})

    codificado = encode_payload(fog)
    texto = base64.b64decode(codificado).decode("utf-8")

    assert " " not in texto
    assert json.loads(texto) == {"id": 1, "version": "1.0", "timestamp": 5, "params": {"t": 2}}


def test_encode_fog_mantem_method_preenchido():
    fog = FogPayload(method="thing.event.property.post")

    assert decode_wire(encode_payload(fog))["method"] == "thing.event.property.post"


def test_encode_aliyun_sempre_tem_method():
    assert decode_wire(encode_payload(AliyunPayload()))["method"] == ""


def test_encode_preserva_unicode():
    fog = FogPayload(params={"local": "São Paulo"})

    assert decode_wire(encode_payload(fog))["params"]["local"] == "São Paulo"


@pytest.mark.parametrize("constante", ["NaN", "Infinity", "-Infinity"])
def test_decode_constantes_nao_finitas_sao_invalidas(constante):
    raw = '{"version": "1.0", "params": {"t": %s}}' % constante

    assert decode_payload(AliyunPayload, raw) == AliyunPayload()


def test_encode_recusa_valor_nao_finito():
    with pytest.raises(ValueError):
        encode_payload(FogPayload(params={"t": math.nan}))


def test_traducao_com_nan_gera_json_estrito(tradutor):
    resposta = tradutor.translate_uplink(
        UplinkRequest(
            raw_topic="/sys/PK/DN/thing/event/property/post",
            raw_payload='{"version":"1.0","params":{"t":NaN}}',
        )
    )

    texto = base64.b64decode(resposta.fog_payload).decode("utf-8")
    dados = json.loads(texto, parse_constant=lambda nome: pytest.fail(nome))
    assert dados["params"] == {}
