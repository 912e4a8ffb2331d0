"""
conftest.py

Fixtures compartilhadas pelos testes do fog-uplink-bridge.

Aqui:
- Montamos um matcher/tradutor novo por teste (são imutáveis, mas assim
  cada teste deixa claro de onde vem a instância).
- Criamos um TestClient do FastAPI apontando para uma app com esse tradutor.
"""

import json

import pytest
from fastapi.testclient import TestClient

from fog_uplink_bridge.api.main import criar_app
from fog_uplink_bridge.core.tradutor import Translator, build_uplink_matcher


@pytest.fixture
def matcher():
    return build_uplink_matcher()


@pytest.fixture
def tradutor(matcher):
    return Translator(matcher=matcher)


@pytest.fixture
def client(tradutor):
    """
    Cliente HTTP de teste. Não sobe servidor: chama a app ASGI direto.
    """
    return TestClient(criar_app(tradutor))


@pytest.fixture
def aliyun_payload():
    """
    Payload Aliyun típico de property post, já serializado.
    """
    return json.dumps(
        {
            "id": "42",
            "version": "1.0",
            "params": {"temperature": 21.5, "power": {"on": True}},
            "method": "thing.event.property.post",
        }
    )
