# Módulo: operacoes.py
"""
Operações de cadastro sobre o canal: criar, alterar status, editar e excluir.

Todas seguem o mesmo roteiro: alteração otimista no Row Store -> push ->
se o servidor recusar (ou não responder), um aviso é registrado para o
usuário. A alteração otimista NÃO é desfeita; o próximo snapshot do
servidor é quem reconcilia o estado.

Cada sessão da tela tem o seu ServicoPedidos (e a sua lista de avisos);
o ClienteCanal é compartilhado.

A checagem de duplicidade aqui é só um atalho de usabilidade: a decisão
final é sempre do servidor.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from painel.config import (
    EVENTO_ATUALIZAR,
    EVENTO_CRIAR,
    EVENTO_EXCLUIR,
    EVENTO_STATUS,
    TEXTO_CONFIRMACAO_EXCLUSAO,
)
from painel.dados import (
    adicionar_pedido,
    alterar_status,
    chave_composta,
    mesclar_campos,
    montar_linha_criacao,
    pedido_de_formulario,
    pedido_duplicado,
    remover_pedido,
)
from painel.erros import ErroComando, ErroConexao, ErroConfirmacao, ErroPedidoDuplicado
from painel.tratamento import normalizar_valor_br

logger = logging.getLogger(__name__)


@dataclass
class Aviso:
    """Mensagem exibida ao usuário (toast)."""
    mensagem: str
    descricao: str = ""
    tipo: str = "erro"  # erro, sucesso
    criado_em: datetime = field(default_factory=datetime.now)


class ServicoPedidos:
    """Orquestra as operações de pedido sobre um ClienteCanal."""

    def __init__(self, cliente, ao_avisar: Optional[Callable[[Aviso], None]] = None):
        self.cliente = cliente
        self.avisos: List[Aviso] = []
        self._ao_avisar = ao_avisar

    # --- Operações ---

    async def criar_pedido(self, formulario: Dict[str, Any], id_sequencial: str = "") -> bool:
        """
        Cadastra um novo pedido. `formulario` usa as chaves de COLUNAS_CRIACAO
        (o número do pedido vai em 'pedido_original'). Levanta ErroPedidoDuplicado
        sem tocar no Row Store nem no servidor quando a chave já existe.
        """
        chave = chave_composta(formulario.get("pedido_original", ""), formulario.get("produto", ""))
        if pedido_duplicado(chave, self.cliente.snapshot.ids()):
            logger.info(f"Cadastro barrado: pedido duplicado '{chave}'")
            raise ErroPedidoDuplicado(chave)

        id_otimista = str(id_sequencial) if id_sequencial else chave
        self.cliente.manual_update(adicionar_pedido(pedido_de_formulario(formulario, id_otimista)))

        linha = montar_linha_criacao(formulario, str(id_sequencial or ""))
        return await self._enviar(EVENTO_CRIAR, {"row": linha}, "Erro ao criar pedido. Recarregue a página.")

    async def atualizar_status(self, id_pedido: str, status: str) -> bool:
        self.cliente.manual_update(alterar_status(id_pedido, status))
        return await self._enviar(
            EVENTO_STATUS, {"id": id_pedido, "status": status}, "Erro ao atualizar status."
        )

    async def atualizar_pedido(self, id_pedido: str, campos: Dict[str, Any]) -> bool:
        self.cliente.manual_update(mesclar_campos(id_pedido, campos))
        linha = dict(campos)
        if "valor" in linha:
            linha["valor"] = normalizar_valor_br(linha["valor"])
        return await self._enviar(
            EVENTO_ATUALIZAR, {"id": id_pedido, "row": linha}, "Erro ao atualizar pedido."
        )

    async def excluir_pedido(self, id_pedido: str, confirmacao: str) -> bool:
        if not confirmacao_valida(confirmacao):
            raise ErroConfirmacao(TEXTO_CONFIRMACAO_EXCLUSAO)
        self.cliente.manual_update(remover_pedido(id_pedido))
        return await self._enviar(EVENTO_EXCLUIR, {"id": id_pedido}, "Erro ao excluir.")

    # --- Avisos ---

    def avisar(self, aviso: Aviso):
        self.avisos.append(aviso)
        if self._ao_avisar is not None:
            self._ao_avisar(aviso)

    def descartar_avisos(self) -> List[Aviso]:
        avisos, self.avisos = self.avisos, []
        return avisos

    async def _enviar(self, evento, payload, mensagem_erro) -> bool:
        try:
            await self.cliente.push(evento, payload)
        except (ErroComando, ErroConexao) as exc:
            logger.error(f"Falha no comando '{evento}': {exc}")
            self.avisar(Aviso(mensagem=mensagem_erro, descricao=str(exc)))
            return False
        return True


def confirmacao_valida(texto: str) -> bool:
    """A exclusão só é liberada com o literal exato."""
    return texto == TEXTO_CONFIRMACAO_EXCLUSAO
