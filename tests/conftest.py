# tests/conftest.py
import asyncio
import json

import pytest

from painel.dados import Pedido, Snapshot


class SocketFalso:
    """WebSocket em memória. O teste faz o papel do servidor através de `responder`."""

    def __init__(self, responder=None):
        self.enviados = []
        self.responder = responder
        self.fechado = False
        self._entrada = asyncio.Queue()

    async def send(self, texto):
        frame = json.loads(texto)
        self.enviados.append(frame)
        if self.responder is not None:
            for resposta in self.responder(frame) or []:
                self.entregar(resposta)

    def entregar(self, frame):
        self._entrada.put_nowait(json.dumps(frame))

    def entregar_texto(self, texto):
        self._entrada.put_nowait(texto)

    def encerrar(self):
        """Servidor derruba a conexão."""
        self._entrada.put_nowait(None)

    def falhar(self, exc):
        """A próxima leitura do socket levanta `exc`."""
        self._entrada.put_nowait(exc)

    async def close(self):
        self.fechado = True
        self._entrada.put_nowait(None)

    def eventos_enviados(self):
        return [frame[3] for frame in self.enviados]

    def __aiter__(self):
        return self

    async def __anext__(self):
        texto = await self._entrada.get()
        if texto is None:
            raise StopAsyncIteration
        if isinstance(texto, Exception):
            raise texto
        return texto


def conector(*sockets):
    """Fábrica no lugar de `websockets.connect`: entrega os sockets em sequência."""
    chamadas = []

    def conectar(endpoint):
        chamadas.append(endpoint)

        async def gerar():
            for ws in sockets:
                yield ws
            # sem mais conexões disponíveis: fica parado como um transporte em backoff
            await asyncio.Event().wait()
        return gerar()

    conectar.chamadas = chamadas
    return conectar


def servidor(snapshot=None, respostas=None, join_ok=True):
    """
    Responde aos frames do cliente como o backend faria.
    `respostas`: evento -> (status, response); status None = nunca responde.
    """
    respostas = respostas or {}
    snapshot = snapshot if snapshot is not None else {"rows": [], "last_updated": None}

    def responder(frame):
        join_ref, ref, topico, evento, payload = frame
        if evento == "phx_join":
            if join_ok:
                corpo = {"status": "ok", "response": snapshot}
            else:
                corpo = {"status": "error", "response": {"reason": "unauthorized"}}
            return [[join_ref, ref, topico, "phx_reply", corpo]]
        if evento in respostas:
            status, resposta = respostas[evento]
            if status is None:
                return []
            return [[join_ref, ref, topico, "phx_reply", {"status": status, "response": resposta}]]
        return [[join_ref, ref, topico, "phx_reply", {"status": "ok", "response": {}}]]

    return responder


async def esperar_ate(condicao, timeout=1.0):
    """Cede o loop até a condição ficar verdadeira."""
    limite = asyncio.get_running_loop().time() + timeout
    while not condicao():
        if asyncio.get_running_loop().time() > limite:
            raise AssertionError("condição não atingida a tempo")
        await asyncio.sleep(0.005)


class ClienteFalso:
    """Substituto do ClienteCanal para testar as operações sem socket."""

    def __init__(self, pedidos=(), erro=None):
        self.snapshot = Snapshot(pedidos=tuple(pedidos), ultima_atualizacao="t0")
        self.pushes = []
        self.erro = erro

    def manual_update(self, transformar):
        self.snapshot = transformar(self.snapshot)
        return self.snapshot

    async def push(self, evento, payload):
        self.pushes.append((evento, payload))
        if self.erro is not None:
            raise self.erro
        return {}


@pytest.fixture
def pedidos_exemplo():
    return [
        Pedido(id="1", pedido_original="1", cliente="ACME", status="Ganho", categoria="ORGLIGHT",
               origem="Instagram", produto="", data_emissao="01/10/2026", data_fechamento="19/10/2026",
               valor=1000.0, estado="SP", profissional="Ana"),
        Pedido(id="2", pedido_original="2", cliente="Beta Ltda", status="Em andamento", categoria="PERFIL",
               origem="Indicação", produto="", data_emissao="19/10/2026", valor=500.0, estado="RJ",
               profissional="Bruno"),
        Pedido(id="3", pedido_original="3", cliente="Gama", status="Perdido", categoria="ORGLIGHT",
               origem="Instagram", produto="", data_emissao="19/10/2026", valor=700.0, estado="SP",
               profissional="Ana"),
    ]
