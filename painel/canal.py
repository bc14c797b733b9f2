# Módulo: canal.py
"""
Cliente do canal em tempo real (Phoenix Channels, serializador V2 sobre WebSocket).

Ciclo de vida:  DESCONECTADO -> CONECTANDO -> CONECTADO -> INGRESSADO

- CONECTADO: socket aberto, canal ainda não ingressado (ou ingresso recusado).
- INGRESSADO: o servidor confirmou o join e o snapshot inicial foi carregado.

A reconexão do socket fica a cargo do iterador de `websockets.connect`; a cada
nova conexão o cliente volta a ingressar no tópico. Se o próprio iterador
desistir (erro não transitório), o cliente espera `intervalo_reconexao` e
recomeça. Frames malformados são registrados no log e descartados.

Todas as alterações do Row Store acontecem no event loop do cliente. Leitores
recebem o `Snapshot` imutável atual.
"""

import asyncio
import itertools
import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed

from painel.config import (
    EVENTOS_SNAPSHOT,
    INTERVALO_HEARTBEAT,
    INTERVALO_RECONEXAO,
    TIMEOUT_PUSH,
    TOKEN_SOCKET,
    TOPICO_PAINEL,
    URL_API,
    VERSAO_SERIALIZADOR,
)
from painel.dados import Snapshot
from painel.erros import ErroComando, ErroConexao, ErroTimeout

logger = logging.getLogger(__name__)

TOPICO_PHOENIX = "phoenix"
EVENTO_JOIN = "phx_join"
EVENTO_LEAVE = "phx_leave"
EVENTO_REPLY = "phx_reply"
EVENTO_ERRO = "phx_error"
EVENTO_FECHAR = "phx_close"
EVENTO_HEARTBEAT = "heartbeat"


class EstadoConexao(Enum):
    DESCONECTADO = "desconectado"
    CONECTANDO = "conectando"
    CONECTADO = "conectado"
    INGRESSADO = "ingressado"


def montar_endpoint(url_base: str, token: str) -> str:
    """
    'http://host/socket' -> 'ws://host/socket/websocket?token=...&vsn=2.0.0'
    """
    url = url_base.rstrip("/")
    if url.startswith("https://"):
        url = "wss://" + url[len("https://"):]
    elif url.startswith("http://"):
        url = "ws://" + url[len("http://"):]
    if not url.endswith("/websocket"):
        url += "/websocket"
    return f"{url}?{urlencode({'token': token, 'vsn': VERSAO_SERIALIZADOR})}"


class ClienteCanal:
    """Mantém o Row Store sincronizado com o servidor pelo canal `dashboard:main`."""

    def __init__(
        self,
        url_base: str = URL_API,
        token: str = TOKEN_SOCKET,
        topico: str = TOPICO_PAINEL,
        timeout_push: float = TIMEOUT_PUSH,
        intervalo_heartbeat: float = INTERVALO_HEARTBEAT,
        intervalo_reconexao: float = INTERVALO_RECONEXAO,
        conectar: Callable = connect,
    ):
        self.endpoint = montar_endpoint(url_base, token)
        self.topico = topico
        self.timeout_push = timeout_push
        self.intervalo_heartbeat = intervalo_heartbeat
        self.intervalo_reconexao = intervalo_reconexao
        self._conectar = conectar

        self._snapshot = Snapshot()
        self._estado = EstadoConexao.DESCONECTADO
        self._ouvintes: List[Callable[[Snapshot], None]] = []
        self._pendentes: Dict[str, asyncio.Future] = {}
        self._refs = itertools.count(1)
        self._join_ref: Optional[str] = None
        self._ws = None
        self._tarefa: Optional[asyncio.Task] = None
        self.ingressado = asyncio.Event()

    # --- Leitura ---

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def estado(self) -> EstadoConexao:
        return self._estado

    @property
    def is_connected(self) -> bool:
        return self._estado is EstadoConexao.INGRESSADO

    def inscrever(self, ouvinte: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Registra um ouvinte chamado a cada novo snapshot. Retorna a função de cancelamento."""
        self._ouvintes.append(ouvinte)

        def cancelar():
            if ouvinte in self._ouvintes:
                self._ouvintes.remove(ouvinte)
        return cancelar

    # --- Ciclo de vida ---

    async def conectar(self):
        """Inicia a conexão em segundo plano. Não espera o join."""
        if self._tarefa is not None and not self._tarefa.done():
            return
        self._mudar_estado(EstadoConexao.CONECTANDO)
        self._tarefa = asyncio.create_task(self._executar())

    async def desconectar(self):
        """Sai do tópico, fecha o socket e encerra a reconexão."""
        tarefa, self._tarefa = self._tarefa, None
        ws = self._ws
        if ws is not None and self.is_connected:
            try:
                await self._enviar_frame(ws, self._join_ref, self._proximo_ref(), self.topico, EVENTO_LEAVE, {})
            except ConnectionClosed:
                pass
        if tarefa is not None:
            tarefa.cancel()
            try:
                await tarefa
            except asyncio.CancelledError:
                pass
        if ws is not None:
            await ws.close()
        self._ws = None
        self.ingressado.clear()
        self._mudar_estado(EstadoConexao.DESCONECTADO)

    async def _executar(self):
        while True:
            try:
                async for ws in self._conectar(self.endpoint):
                    await self._atender(ws)
            except Exception:
                # o iterador do websockets repassa erros que ele não considera transitórios
                logger.exception(f"Falha ao conectar em {self.endpoint}")
            self._mudar_estado(EstadoConexao.CONECTANDO)
            await asyncio.sleep(self.intervalo_reconexao)

    async def _atender(self, ws):
        self._ws = ws
        self._mudar_estado(EstadoConexao.CONECTADO)
        logger.info(f"Socket aberto em {self.endpoint}")
        try:
            await self._sessao(ws)
        except ConnectionClosed as exc:
            logger.warning(f"Socket fechado: {exc}")
        except Exception:
            logger.exception("Erro inesperado na sessão do canal")
        finally:
            self._ws = None
            self._join_ref = None
            self.ingressado.clear()
            self._mudar_estado(EstadoConexao.DESCONECTADO)

    async def _sessao(self, ws):
        heartbeat = asyncio.create_task(self._heartbeat(ws))
        ingresso = asyncio.create_task(self._ingressar())
        try:
            async for texto in ws:
                self._tratar_mensagem(texto)
        finally:
            heartbeat.cancel()
            ingresso.cancel()

    async def _heartbeat(self, ws):
        while True:
            await asyncio.sleep(self.intervalo_heartbeat)
            try:
                await self._enviar_frame(ws, None, self._proximo_ref(), TOPICO_PHOENIX, EVENTO_HEARTBEAT, {})
            except ConnectionClosed:
                return

    async def _ingressar(self):
        ref = self._proximo_ref()
        self._join_ref = ref
        try:
            resposta = await self._solicitar(self.topico, EVENTO_JOIN, {}, join_ref=ref, ref=ref)
        except ErroComando as exc:
            # ErroTimeout também cai aqui: continua conectado, mas sem ingresso
            logger.error(f"Não foi possível ingressar em {self.topico}: {exc}")
            return
        try:
            snapshot = Snapshot.de_payload(resposta)
        except (AttributeError, TypeError, ValueError):
            logger.exception(f"Snapshot inválido na resposta do join em {self.topico}")
            return
        logger.info(f"Ingressou em {self.topico}")
        self._substituir(snapshot)
        self._mudar_estado(EstadoConexao.INGRESSADO)
        self.ingressado.set()

    # --- Comandos ---

    async def push(self, evento: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Envia um comando ao tópico e espera a confirmação.

        Retorna o `response` do servidor em caso de 'ok'. Levanta ErroComando
        em caso de 'error', ErroTimeout se nada chegar no prazo e ErroConexao
        quando o canal não está ingressado.
        """
        if not self.is_connected:
            raise ErroConexao()
        return await self._solicitar(self.topico, evento, payload, join_ref=self._join_ref, ref=self._proximo_ref())

    def manual_update(self, transformar: Callable[[Snapshot], Snapshot]) -> Snapshot:
        """Aplica uma transformação local imediata (update otimista)."""
        self._substituir(transformar(self._snapshot))
        return self._snapshot

    async def _solicitar(self, topico, evento, payload, join_ref, ref):
        ws = self._ws
        if ws is None:
            raise ErroConexao()
        futuro = asyncio.get_running_loop().create_future()
        self._pendentes[ref] = futuro
        try:
            await self._enviar_frame(ws, join_ref, ref, topico, evento, payload)
            try:
                resposta = await asyncio.wait_for(futuro, self.timeout_push)
            except asyncio.TimeoutError:
                raise ErroTimeout(evento, self.timeout_push) from None
        finally:
            self._pendentes.pop(ref, None)

        if resposta.get("status") == "ok":
            return resposta.get("response") or {}
        raise ErroComando(evento, resposta.get("response"))

    async def _enviar_frame(self, ws, join_ref, ref, topico, evento, payload):
        await ws.send(json.dumps([join_ref, ref, topico, evento, payload], ensure_ascii=False))

    # --- Mensagens do servidor ---

    def _tratar_mensagem(self, texto):
        try:
            join_ref, ref, topico, evento, payload = json.loads(texto)
        except (ValueError, TypeError):
            logger.warning(f"Frame ignorado (formato inválido): {texto!r}")
            return

        if evento == EVENTO_REPLY:
            futuro = self._pendentes.get(ref) if isinstance(ref, str) else None
            if futuro is None or futuro.done():
                logger.debug(f"Resposta tardia ignorada (ref={ref})")
                return
            futuro.set_result(payload if isinstance(payload, dict) else {})
            return

        if topico != self.topico:
            return

        if evento in EVENTOS_SNAPSHOT:
            try:
                snapshot = Snapshot.de_payload(payload)
            except (AttributeError, TypeError, ValueError):
                logger.exception(f"Snapshot inválido em '{evento}' ignorado")
                return
            logger.info(f"Snapshot recebido via '{evento}'")
            self._substituir(snapshot)
        elif evento in (EVENTO_ERRO, EVENTO_FECHAR):
            if join_ref is not None and join_ref != self._join_ref:
                return
            logger.warning(f"Canal {self.topico} encerrado pelo servidor ({evento})")
            self.ingressado.clear()
            if self._ws is not None:
                self._mudar_estado(EstadoConexao.CONECTADO)
        else:
            logger.debug(f"Evento '{evento}' sem tratamento")

    # --- Internos ---

    def _proximo_ref(self) -> str:
        return str(next(self._refs))

    def _mudar_estado(self, novo: EstadoConexao):
        if novo is not self._estado:
            logger.debug(f"Estado do canal: {self._estado.value} -> {novo.value}")
            self._estado = novo

    def _substituir(self, snapshot: Snapshot):
        self._snapshot = snapshot
        for ouvinte in list(self._ouvintes):
            try:
                ouvinte(snapshot)
            except Exception:
                logger.exception("Erro em ouvinte de snapshot")
