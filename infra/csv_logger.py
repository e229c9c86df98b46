from __future__ import annotations

import csv
import os
import shutil
from pathlib import Path
from typing import IO, List, Optional, Sequence

from domain.errors import LogFileError
from domain.summary import summarize


def next_log_path(directory: str | os.PathLike = ".") -> Path:
    """Primeiro pingN.csv inexistente no diretório, N a partir de 1."""
    base = Path(directory)
    i = 1
    while (base / f"ping{i}.csv").exists():
        i += 1
    return base / f"ping{i}.csv"


def _fsync_dir(directory: Path) -> None:
    # persiste a entrada do diretório depois do os.replace (só POSIX abre diretório)
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


class CsvLogger:
    """
    Log CSV com barreira de linhas.

    - Cabeçalho escrito uma vez, na criação.
    - Linha k só é escrita quando TODOS os alvos têm o k-ésimo valor.
    - Tempo da linha é sintético: k * period, com uma casa decimal.
    - finalize() (uma única vez) coloca o bloco de estatísticas antes dos dados,
      montando o arquivo novo com nome temporário e trocando por os.replace.
      Se o processo cair antes da troca, o arquivo original fica intacto.
    """

    def __init__(self, path: Path, f: IO[str], labels: Sequence[str], period_sec: float):
        if not labels:
            raise ValueError("CsvLogger precisa de pelo menos um alvo.")

        self.path = Path(path)
        self.period_sec = float(period_sec)
        self.num_targets = len(labels)

        self._f: Optional[IO[str]] = f
        self._w = csv.writer(f)
        self._buffers: List[List[int]] = [[] for _ in labels]
        self.rows_written = 0
        self._finalized = False

        header = ["Time (s)", f"{labels[0]} (nearest hop)", *labels[1:]]
        self._w.writerow(header)
        f.flush()

    @classmethod
    def create(
        cls,
        labels: Sequence[str],
        period_sec: float,
        directory: str | os.PathLike = ".",
    ) -> "CsvLogger":
        path = next_log_path(directory)
        try:
            # "x": não sobrescreve um pingN.csv criado entre a busca e a abertura
            f = open(path, "x", newline="", encoding="utf-8")
        except OSError as e:
            raise LogFileError(f"Could not create log file {path}: {e}") from e
        return cls(path, f, labels, period_sec)

    def __enter__(self) -> "CsvLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finalize()

    @property
    def finalized(self) -> bool:
        return self._finalized

    def pending(self, index: int) -> int:
        """Valores do alvo ainda não escritos em linha."""
        return len(self._buffers[index]) - self.rows_written

    def log(self, index: int, latency_ms: float) -> None:
        if not 0 <= index < self.num_targets:
            raise ValueError(f"Índice de alvo fora do intervalo: {index}")
        f = self._f
        if self._finalized or f is None:
            raise RuntimeError("CsvLogger.log chamado depois de finalize()")

        self._buffers[index].append(int(latency_ms))

        while all(len(buf) > self.rows_written for buf in self._buffers):
            self._write_row(f, self.rows_written)
            self.rows_written += 1

    def _write_row(self, f: IO[str], k: int) -> None:
        stamp = f"{k * self.period_sec:.1f}"
        self._w.writerow([stamp, *(buf[k] for buf in self._buffers)])
        f.flush()

    def _summary_rows(self) -> List[List[str]]:
        summaries = [summarize(buf) for buf in self._buffers]
        blank = [""] * (self.num_targets + 1)
        return [
            ["", *(str(s.average) for s in summaries), "Average"],
            blank,
            blank,
            ["", *(str(s.p95) for s in summaries), "95th percentile"],
            ["", *(str(s.p99) for s in summaries), "99th percentile"],
        ]

    def finalize(self) -> None:
        if self._finalized:
            return
        self._finalized = True

        if self._f is not None:
            self._f.close()
            self._f = None

        # sem nenhuma linha completa não há o que resumir: fica só o cabeçalho
        if self.rows_written == 0:
            return

        rows = self._summary_rows()
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp, "w", newline="", encoding="utf-8") as out:
                w = csv.writer(out)
                for r in rows:
                    w.writerow(r)
                out.flush()
                with open(self.path, "r", newline="", encoding="utf-8") as src:
                    shutil.copyfileobj(src, out)
                out.flush()
                os.fsync(out.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            try:
                tmp.unlink()
            except FileNotFoundError:
                pass
            raise

        _fsync_dir(self.path.parent)

    close = finalize
