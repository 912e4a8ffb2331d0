"""
Testes do simulador: as mensagens geradas têm que ser traduzíveis
pela própria ponte.
"""

import json

from fog_uplink_bridge.core.schemas import UplinkRequest
from fog_uplink_bridge.mqtt.simulator.publisher import AliyunDeviceSimulator


def test_mensagens_do_simulador_sao_traduziveis(tradutor):
    simulador = AliyunDeviceSimulator(
        product_key="a1Sim",
        device_name="sim-device-001",
        event_names=["temperature", "alarm"],
        client=None,
    )

    mensagens = simulador.gerar_mensagens()

    assert [t for t, _ in mensagens] == [
        "/sys/a1Sim/sim-device-001/thing/event/property/post",
        "/sys/a1Sim/sim-device-001/thing/event/temperature/post",
        "/sys/a1Sim/sim-device-001/thing/event/alarm/post",
    ]

    topicos_fog = [
        tradutor.translate_uplink(UplinkRequest(raw_topic=t, raw_payload=p)).fog_topic
        for t, p in mensagens
    ]
    assert topicos_fog == [
        "fogcloud/a1Sim/sim-device-001/thing/up/property/post",
        "fogcloud/a1Sim/sim-device-001/thing/up/event/temperature/post",
        "fogcloud/a1Sim/sim-device-001/thing/up/event/alarm/post",
    ]


def test_ids_incrementam_por_dispositivo():
    simulador = AliyunDeviceSimulator("pk", "dn", [], client=None)

    primeiro = json.loads(simulador.gerar_mensagens()[0][1])
    segundo = json.loads(simulador.gerar_mensagens()[0][1])

    assert (primeiro["id"], segundo["id"]) == ("1", "2")
    assert primeiro["version"] == "1.0"
