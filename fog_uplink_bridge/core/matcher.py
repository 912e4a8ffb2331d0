"""
matcher.py

Casamento de tópicos MQTT contra um conjunto fixo de padrões.

Responsável por:
- Representar um padrão de tópico (segmentos literais ou curinga '+').
- Registrar os padrões uma única vez, na inicialização.
- Dado um tópico concreto, dizer qual padrão casou e quais valores
  foram capturados pelos curingas, da esquerda para a direita.

Depois de `freeze()` o matcher é somente leitura e pode ser consultado
por várias requisições concorrentes sem lock.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from fog_uplink_bridge.utils.logger import get_logger

logger = get_logger(__name__)

SEPARADOR = "/"
CURINGA = "+"

# Curinga multinível do MQTT. Ainda não é suportado: é tratado como literal.
CURINGA_MULTINIVEL = "#"


@dataclass(frozen=True)
class TopicPattern:
    """
    Padrão de tópico imutável. A identidade é a string original,
    usada como chave na tabela de regras de tradução.
    """

    raw: str
    segments: Tuple[str, ...] = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "segments", tuple(self.raw.split(SEPARADOR)))

    @property
    def wildcard_count(self) -> int:
        return sum(1 for seg in self.segments if seg == CURINGA)

    def match(self, segments: List[str]) -> Optional[List[str]]:
        """
        Compara segmento a segmento. Retorna os valores capturados
        ou None se não casar.
        """
        if len(segments) != len(self.segments):
            return None

        params: List[str] = []
        for esperado, concreto in zip(self.segments, segments):
            if esperado == CURINGA:
                params.append(concreto)
            elif esperado != concreto:
                return None
        return params

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class MatchResult:
    pattern: Optional[TopicPattern] = None
    params: Tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return self.pattern is not None

    @property
    def pattern_id(self) -> str:
        return self.pattern.raw if self.pattern else ""


NO_MATCH = MatchResult()


class TopicMatcher:
    """
    Conjunto ordenado de padrões. Em caso de sobreposição vence o
    primeiro registrado.
    """

    def __init__(self):
        self._padroes: List[TopicPattern] = []
        self._congelado = False

    def register(self, pattern) -> TopicPattern:
        """
        Adiciona um padrão (string ou TopicPattern). Só pode ser chamado
        antes de `freeze()`. Registrar o mesmo padrão duas vezes é no-op.
        """
        if self._congelado:
            raise RuntimeError("TopicMatcher congelado: registro fora da inicialização")

        if not isinstance(pattern, TopicPattern):
            pattern = TopicPattern(pattern)

        if pattern in self._padroes:
            return pattern

        self._padroes.append(pattern)
        logger.debug("Padrão registrado: %s", pattern.raw)
        return pattern

    def freeze(self) -> "TopicMatcher":
        self._congelado = True
        return self

    @property
    def frozen(self) -> bool:
        return self._congelado

    @property
    def patterns(self) -> Tuple[TopicPattern, ...]:
        return tuple(self._padroes)

    def match(self, topic: str) -> MatchResult:
        """
        Varre os padrões na ordem de registro e devolve o primeiro que
        casar com `topic`. Tópico vazio nunca casa.
        """
        if not topic:
            return NO_MATCH

        segments = topic.split(SEPARADOR)
        for padrao in self._padroes:
            params = padrao.match(segments)
            if params is not None:
                return MatchResult(pattern=padrao, params=tuple(params))

        return NO_MATCH
