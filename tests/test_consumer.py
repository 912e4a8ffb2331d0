"""
Testes da ponte MQTT, sem broker: o cliente paho é substituído por um
dublê que só registra as publicações.
"""

import json
import logging
from types import SimpleNamespace

import pytest
from paho.mqtt import client as mqtt

from fog_uplink_bridge.config.settings import settings
from fog_uplink_bridge.mqtt import consumer


class ClienteFalso:
    def __init__(self, rcs=None):
        self.publicados = []
        self._rcs = list(rcs or [])

    def publish(self, topic, payload):
        self.publicados.append((topic, payload))
        rc = self._rcs.pop(0) if self._rcs else mqtt.MQTT_ERR_SUCCESS
        return SimpleNamespace(rc=rc)


@pytest.fixture(autouse=True)
def sem_espera(monkeypatch):
    monkeypatch.setattr(consumer.time, "sleep", lambda _: None)


def test_traduzir_mensagem_event_post(tradutor, aliyun_payload):
    topico, payload = consumer.traduzir_mensagem(
        tradutor, "/sys/a1Prod/dev-01/thing/event/alarm/post", aliyun_payload.encode()
    )

    assert topico == "fogcloud/a1Prod/dev-01/thing/up/event/alarm/post"
    dados = json.loads(payload)
    assert dados["params"] == json.loads(aliyun_payload)["params"]


def test_traduzir_mensagem_descarta_topico_desconhecido(tradutor):
    assert consumer.traduzir_mensagem(tradutor, "outro/topico", b"{}") is None


def test_traduzir_mensagem_descarta_payload_nao_utf8(tradutor):
    assert (
        consumer.traduzir_mensagem(
            tradutor, "/sys/PK/DN/thing/event/property/post", b"\xff\xfe"
        )
        is None
    )


def test_on_message_republica_no_topico_fog(tradutor, aliyun_payload):
    cliente = ClienteFalso()
    msg = SimpleNamespace(
        topic="/sys/PK/DN/thing/event/property/post", payload=aliyun_payload.encode()
    )

    consumer.on_message(cliente, {"tradutor": tradutor}, msg)

    assert len(cliente.publicados) == 1
    assert cliente.publicados[0][0] == "fogcloud/PK/DN/thing/up/property/post"


def test_on_message_nao_publica_quando_falha(tradutor):
    cliente = ClienteFalso()
    msg = SimpleNamespace(topic="/sys/PK/DN/thing/event/property/post", payload=b"")

    consumer.on_message(cliente, {"tradutor": tradutor}, msg)

    assert cliente.publicados == []


def test_publicar_com_retries_recupera(monkeypatch):
    monkeypatch.setattr(settings, "MQTT_PUBLISH_MAX_RETRIES", 3)
    cliente = ClienteFalso(rcs=[mqtt.MQTT_ERR_NO_CONN, mqtt.MQTT_ERR_SUCCESS])

    assert consumer.publicar_com_retries(cliente, "t", "p") is True
    assert len(cliente.publicados) == 2


def test_publicar_com_retries_desiste(monkeypatch):
    monkeypatch.setattr(settings, "MQTT_PUBLISH_MAX_RETRIES", 2)
    cliente = ClienteFalso(rcs=[mqtt.MQTT_ERR_NO_CONN] * 5)

    assert consumer.publicar_com_retries(cliente, "t", "p") is False
    assert len(cliente.publicados) == 2


def test_conectar_com_retries_relanca_depois_do_limite(monkeypatch):
    monkeypatch.setattr(settings, "MQTT_CONNECT_MAX_RETRIES", 2)
    tentativas = []

    class ClienteSemBroker:
        def connect(self, host, port, keepalive):
            tentativas.append((host, port))
            raise ConnectionRefusedError("sem broker")

    with pytest.raises(ConnectionRefusedError):
        consumer.conectar_com_retries(ClienteSemBroker())

    assert len(tentativas) == 2


def test_on_message_publica_uma_vez_sem_dormir(tradutor, aliyun_payload, monkeypatch):
    def nao_dorme(_):
        raise AssertionError("callback do paho não pode dormir")

    monkeypatch.setattr(consumer.time, "sleep", nao_dorme)
    cliente = ClienteFalso(rcs=[mqtt.MQTT_ERR_NO_CONN, mqtt.MQTT_ERR_SUCCESS])
    msg = SimpleNamespace(
        topic="/sys/PK/DN/thing/event/property/post", payload=aliyun_payload.encode()
    )

    consumer.on_message(cliente, {"tradutor": tradutor}, msg)

    assert len(cliente.publicados) == 1


def test_mensagem_descartada_loga_topico_e_tipo(tradutor, caplog):
    with caplog.at_level(logging.WARNING, logger=consumer.logger.name):
        consumer.traduzir_mensagem(tradutor, "outro/topico", b"{}")

    registro = [r for r in caplog.records if r.name == consumer.logger.name][-1]
    assert registro.raw_topic == "outro/topico"
    assert registro.kind == "InvalidTopic"
