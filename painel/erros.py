# Módulo: erros.py
"""
Exceções do painel.

Separadas em três famílias: conexão (canal fora do ar), comando remoto
(o servidor recusou ou não respondeu um push) e validação local (a
operação é barrada antes de qualquer alteração ou chamada de rede).
"""

from typing import Any, Dict, Optional


class ErroPainel(Exception):
    """Base de todas as exceções do painel."""


# ==============================================================================
# CONEXÃO
# ==============================================================================

class ErroConexao(ErroPainel):
    """Canal não ingressado: não há para onde enviar o comando."""

    def __init__(self, mensagem: str = "Not connected"):
        super().__init__(mensagem)


# ==============================================================================
# COMANDOS REMOTOS
# ==============================================================================

class ErroComando(ErroPainel):
    """O servidor respondeu 'error' a um push."""

    def __init__(self, evento: str, resposta: Optional[Dict[str, Any]] = None):
        self.evento = evento
        self.resposta = resposta or {}
        super().__init__(f"Comando '{evento}' recusado pelo servidor: {self.resposta}")


class ErroTimeout(ErroComando):
    """Nenhuma confirmação chegou dentro do prazo."""

    def __init__(self, evento: str, timeout: float):
        self.timeout = timeout
        super().__init__(evento, {"reason": "timeout"})
        self.args = (f"Timeout aguardando '{evento}' ({timeout:.1f}s)",)


# ==============================================================================
# VALIDAÇÃO LOCAL
# ==============================================================================

class ErroValidacao(ErroPainel):
    """Falha de validação detectada antes de qualquer push."""


class ErroPedidoDuplicado(ErroValidacao):

    def __init__(self, chave: str):
        self.chave = chave
        super().__init__(
            f"O pedido '{chave}' já existe. Use outro número de pedido ou outro produto."
        )


class ErroConfirmacao(ErroValidacao):

    def __init__(self, esperado: str):
        self.esperado = esperado
        super().__init__(f"Digite '{esperado}' para confirmar a exclusão.")
