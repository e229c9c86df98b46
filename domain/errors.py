from __future__ import annotations

from typing import List, Sequence, Tuple


class ResolveError(RuntimeError):
    pass


class TracerouteError(RuntimeError):
    pass


class LogFileError(RuntimeError):
    pass


class SummaryError(RuntimeError):
    """Coluna vazia no finalize: não deveria acontecer com a barreira de linhas."""


class ProducerError(RuntimeError):
    """
    Falha de um ou mais produtores. Só é levantada depois que todos foram
    aguardados (join), para não interromper os demais durante a execução.
    """

    def __init__(self, message: str, failures: Sequence[Tuple[str, BaseException]] = ()):
        super().__init__(message)
        # pares (nome, erro), um por produtor; nomes podem se repetir
        self.failures: List[Tuple[str, BaseException]] = list(failures)
