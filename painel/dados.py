# Módulo: dados.py
"""
Row Store do painel: o pedido (uma linha da planilha), o snapshot que o
servidor envia e as transformações puras aplicadas sobre ele.

O snapshot é imutável. Toda alteração (servidor ou otimista) produz um novo
valor, então quem lê o snapshot nunca vê uma alteração pela metade.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from painel.config import (
    COLUNAS_CRIACAO,
    FILTROS_CATEGORIA,
    PROFISSIONAL_PADRAO,
    STATUS_EM_ANDAMENTO,
    STATUS_GANHO,
    STATUS_PERDIDO,
)
from painel.tratamento import normalizar_estado, normalizar_valor_br, parse_data_br, parse_valor_br

# Data usada quando a data da linha não pode ser lida (nunca cai em "hoje" ou "mês")
DATA_SENTINELA = pd.Timestamp(1970, 1, 1)


class StatusPedido(Enum):
    EM_ANDAMENTO = STATUS_EM_ANDAMENTO
    GANHO = STATUS_GANHO
    PERDIDO = STATUS_PERDIDO

    @classmethod
    def normalizar(cls, texto) -> Optional["StatusPedido"]:
        """Comparação sem diferenciar maiúsculas. Status desconhecido -> None."""
        if not texto:
            return None
        chave = str(texto).strip().upper()
        for status in cls:
            if status.value.upper() == chave:
                return status
        return None


@dataclass(frozen=True)
class Pedido:
    """Uma linha de pedido, com as chaves de campo usadas no protocolo."""
    id: str
    pedido_original: str = ""
    cliente: str = ""
    profissional: str = PROFISSIONAL_PADRAO
    status: str = STATUS_EM_ANDAMENTO
    categoria: str = ""
    origem: str = ""
    produto: str = ""
    data_emissao: str = ""
    data_fechamento: Optional[str] = None
    valor: float = 0.0
    cidade: str = ""
    estado: str = ""

    @property
    def status_normalizado(self) -> Optional[StatusPedido]:
        return StatusPedido.normalizar(self.status)

    @classmethod
    def de_dict(cls, dados: Dict[str, Any]) -> "Pedido":
        """Lê uma linha vinda do servidor, tolerando campos ausentes."""
        def texto(chave):
            valor = dados.get(chave)
            return "" if valor is None else str(valor)

        return cls(
            id=texto("id"),
            pedido_original=texto("pedido_original") or texto("id"),
            cliente=texto("cliente"),
            profissional=texto("profissional") or PROFISSIONAL_PADRAO,
            status=texto("status"),
            categoria=texto("categoria"),
            origem=texto("origem"),
            produto=texto("produto"),
            data_emissao=texto("data_emissao"),
            data_fechamento=texto("data_fechamento") or None,
            valor=parse_valor_br(dados.get("valor")),
            cidade=texto("cidade"),
            estado=texto("estado"),
        )

    def para_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pedido_original": self.pedido_original,
            "cliente": self.cliente,
            "profissional": self.profissional,
            "status": self.status,
            "categoria": self.categoria,
            "origem": self.origem,
            "produto": self.produto,
            "data_emissao": self.data_emissao,
            "data_fechamento": self.data_fechamento,
            "valor": self.valor,
            "cidade": self.cidade,
            "estado": self.estado,
        }


@dataclass(frozen=True)
class Snapshot:
    pedidos: Tuple[Pedido, ...] = field(default_factory=tuple)
    ultima_atualizacao: Optional[str] = None

    @classmethod
    def de_payload(cls, payload: Optional[Dict[str, Any]]) -> "Snapshot":
        """Converte o payload `{rows, last_updated}` do servidor."""
        payload = payload or {}
        linhas = payload.get("rows") or []
        return cls(
            pedidos=tuple(Pedido.de_dict(linha) for linha in linhas),
            ultima_atualizacao=payload.get("last_updated"),
        )

    def ids(self) -> List[str]:
        return [p.id for p in self.pedidos]

    def buscar(self, id_pedido: str) -> Optional[Pedido]:
        for pedido in self.pedidos:
            if pedido.id == id_pedido:
                return pedido
        return None


# ==============================================================================
# TRANSFORMAÇÕES PURAS (usadas no update otimista)
# ==============================================================================

def adicionar_pedido(pedido: Pedido) -> Callable[[Snapshot], Snapshot]:
    def transformar(atual: Snapshot) -> Snapshot:
        return replace(atual, pedidos=atual.pedidos + (pedido,))
    return transformar


def alterar_status(id_pedido: str, status: str) -> Callable[[Snapshot], Snapshot]:
    def transformar(atual: Snapshot) -> Snapshot:
        return replace(atual, pedidos=tuple(
            replace(p, status=status) if p.id == id_pedido else p for p in atual.pedidos
        ))
    return transformar


def mesclar_campos(id_pedido: str, campos: Dict[str, Any]) -> Callable[[Snapshot], Snapshot]:
    """Mescla um patch de campos no pedido. 'valor' em texto BR é convertido."""
    patch = {k: v for k, v in campos.items() if k in Pedido.__dataclass_fields__ and k != "id"}
    if "valor" in patch:
        patch["valor"] = parse_valor_br(patch["valor"])
    if "data_fechamento" in patch:
        patch["data_fechamento"] = patch["data_fechamento"] or None

    def transformar(atual: Snapshot) -> Snapshot:
        return replace(atual, pedidos=tuple(
            replace(p, **patch) if p.id == id_pedido else p for p in atual.pedidos
        ))
    return transformar


def remover_pedido(id_pedido: str) -> Callable[[Snapshot], Snapshot]:
    def transformar(atual: Snapshot) -> Snapshot:
        return replace(atual, pedidos=tuple(p for p in atual.pedidos if p.id != id_pedido))
    return transformar


# ==============================================================================
# CHAVE COMPOSTA E LINHA DE CRIAÇÃO
# ==============================================================================

def chave_composta(numero_pedido: str, produto: str = "") -> str:
    """'123' + 'WidgetA' -> '123-WidgetA' ; sem produto, só o número."""
    numero_pedido = str(numero_pedido or "").strip()
    produto = str(produto or "").strip()
    return f"{numero_pedido}-{produto}" if produto else numero_pedido


def pedido_duplicado(chave: str, ids: Iterable[str]) -> bool:
    """Comparação sem diferenciar maiúsculas contra todos os ids existentes."""
    chave = chave.strip().lower()
    return any(str(i).strip().lower() == chave for i in ids)


def montar_linha_criacao(formulario: Dict[str, Any], id_provisorio: str = "") -> List[Any]:
    """
    Monta o array posicional de 'add_order' na ordem de COLUNAS_CRIACAO.
    O id fica vazio (ou com o id sequencial informado) para o servidor atribuir.
    O valor segue sempre como texto pt-BR ('1.234,56'), venha ele digitado ou numérico.
    """
    valores = dict(formulario)
    valores["id"] = id_provisorio
    valores["valor"] = normalizar_valor_br(valores.get("valor"))
    return ["" if valores.get(coluna) is None else valores.get(coluna) for coluna in COLUNAS_CRIACAO]


def pedido_de_formulario(formulario: Dict[str, Any], id_pedido: str) -> Pedido:
    """Pedido otimista criado a partir do formulário de cadastro."""
    return Pedido(
        id=id_pedido,
        pedido_original=str(formulario.get("pedido_original", "")),
        cliente=formulario.get("cliente", ""),
        profissional=formulario.get("profissional") or PROFISSIONAL_PADRAO,
        status=formulario.get("status", STATUS_EM_ANDAMENTO),
        categoria=formulario.get("categoria", ""),
        origem=formulario.get("origem", ""),
        produto=formulario.get("produto", ""),
        data_emissao=formulario.get("data_emissao", ""),
        data_fechamento=formulario.get("data_fechamento") or None,
        valor=parse_valor_br(formulario.get("valor")),
        cidade=formulario.get("cidade", ""),
        estado=formulario.get("estado", ""),
    )


# ==============================================================================
# FILTROS DE TELA
# ==============================================================================

def filtrar_pedidos(pedidos: Iterable[Pedido], categoria: str = "Geral", estado: Optional[str] = None) -> List[Pedido]:
    """
    Filtro por aba de categoria e, opcionalmente, pelo estado selecionado no mapa.
    O estado é comparado já normalizado ('SP' e 'São Paulo' são o mesmo estado).
    """
    alvo = FILTROS_CATEGORIA.get(categoria)
    resultado = [p for p in pedidos if alvo is None or p.categoria == alvo]
    if estado:
        estado = normalizar_estado(estado)
        resultado = [p for p in resultado if normalizar_estado(p.estado) == estado]
    return resultado


def buscar_pedidos(pedidos: Iterable[Pedido], termo: str) -> List[Pedido]:
    """Busca por cliente, id ou categoria (trecho, sem diferenciar maiúsculas)."""
    termo = (termo or "").strip().lower()
    if not termo:
        return list(pedidos)
    return [
        p for p in pedidos
        if termo in p.cliente.lower() or termo in p.id.lower() or termo in p.categoria.lower()
    ]


# ==============================================================================
# CONVERSÃO PARA DATAFRAME
# ==============================================================================

def _converter_datas(serie: pd.Series) -> pd.Series:
    datas = serie.map(parse_data_br)
    return pd.to_datetime(datas, errors='coerce').fillna(DATA_SENTINELA)


def pedidos_para_dataframe(pedidos: Iterable[Pedido]) -> pd.DataFrame:
    """
    DataFrame com uma linha por pedido e as colunas derivadas usadas nos cálculos:
    'Status_Norm', 'Data_Emissao' e 'Data_Fechamento' (datetime, sentinela 1970-01-01).
    """
    df = pd.DataFrame([p.para_dict() for p in pedidos], columns=list(Pedido.__dataclass_fields__))

    # 1. Valor numérico
    df['valor'] = pd.to_numeric(df['valor'], errors='coerce').fillna(0.0).astype(float)

    # 2. Status normalizado (None quando desconhecido)
    df['Status_Norm'] = df['status'].map(StatusPedido.normalizar)

    # 3. Datas (DD/MM/AAAA), inválidas viram a sentinela
    df['Data_Emissao'] = _converter_datas(df['data_emissao'])
    df['Data_Fechamento'] = _converter_datas(df['data_fechamento'])
    df['Tem_Fechamento'] = np.where(df['data_fechamento'].fillna('').astype(str).str.strip() != '', True, False)

    return df
