# Módulo: executor.py
"""
Ponte entre o Streamlit (que roda o script a cada interação, em threads
próprias) e o ClienteCanal (asyncio). O cliente vive em um event loop
dedicado, em uma thread daemon; a tela só lê o snapshot imutável e envia
as operações para esse loop.
"""

import asyncio
import logging
import threading

from painel.canal import ClienteCanal

logger = logging.getLogger(__name__)


class ExecutorCanal:

    def __init__(self, cliente: ClienteCanal = None):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name="painel-canal", daemon=True)
        self._thread.start()
        self.cliente = cliente or ClienteCanal()

    def executar(self, corotina, timeout=None):
        """Roda a corotina no loop do canal e espera o resultado (exceções são repassadas)."""
        return asyncio.run_coroutine_threadsafe(corotina, self._loop).result(timeout)

    def iniciar(self):
        self.executar(self.cliente.conectar())
        logger.info("Canal iniciado")

    def parar(self):
        self.executar(self.cliente.desconectar())
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        logger.info("Canal encerrado")
