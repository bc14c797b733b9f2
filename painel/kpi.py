# Módulo: kpi.py
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from painel.dados import Pedido, StatusPedido, pedidos_para_dataframe
from painel.tratamento import normalizar_estado

# Série agrupada: lista de (nome, valor) em ordem decrescente de valor
Serie = List[Tuple[str, float]]


@dataclass
class Volume:
    total: float = 0.0
    hoje: float = 0.0
    mes: float = 0.0


@dataclass
class Metricas:
    volume_fechado: Volume = field(default_factory=Volume)
    volume_orcado: Volume = field(default_factory=Volume)
    top_estados: Serie = field(default_factory=list)
    top_origens: Serie = field(default_factory=list)
    top_profissionais: Serie = field(default_factory=list)

    @property
    def taxa_conversao(self) -> int:
        """Fechado / Orçado em % inteiro (0 quando não há orçado)."""
        if self.volume_orcado.total > 0:
            return round(self.volume_fechado.total / self.volume_orcado.total * 100)
        return 0


def _volume(df, coluna_data, hoje):
    """Soma total, do dia e do mês (mesmo mês e ano) comparando a coluna de data."""
    datas = df[coluna_data].dt.date
    mesmo_dia = datas == hoje
    mesmo_mes = (df[coluna_data].dt.year == hoje.year) & (df[coluna_data].dt.month == hoje.month)
    return Volume(
        total=float(df['valor'].sum()),
        hoje=float(df.loc[mesmo_dia, 'valor'].sum()),
        mes=float(df.loc[mesmo_mes, 'valor'].sum()),
    )


def agrupar_por(df, coluna) -> Serie:
    """
    Soma 'valor' por 'coluna', do maior para o menor. Empates mantêm a ordem
    em que o grupo apareceu. Chave vazia fica fora da série.
    """
    chaves = df[coluna].fillna('').astype(str)
    if coluna == 'estado':
        chaves = chaves.map(normalizar_estado)
    base = pd.DataFrame({'chave': chaves, 'valor': df['valor']})
    base = base[base['chave'].str.strip() != '']
    if base.empty:
        return []
    agrupado = base.groupby('chave', sort=False)['valor'].sum()
    agrupado = agrupado.sort_values(ascending=False, kind='stable')
    return [(nome, float(valor)) for nome, valor in agrupado.items()]


def calcular_metricas(pedidos: Iterable[Pedido], hoje: Optional[date] = None) -> Metricas:
    """Calcula os KPIs (Volume Fechado e Volume Orçado) e as séries por UF, origem e profissional."""
    hoje = hoje or date.today()
    df = pedidos_para_dataframe(pedidos)
    if df.empty:
        return Metricas()

    ganho = df['Status_Norm'] == StatusPedido.GANHO
    em_andamento = df['Status_Norm'] == StatusPedido.EM_ANDAMENTO

    # Volume Fechado: Ganho com data de fechamento preenchida
    df_fechado = df[ganho & df['Tem_Fechamento']]
    # Volume Orçado: Em andamento ou Ganho
    df_orcado = df[ganho | em_andamento]

    return Metricas(
        volume_fechado=_volume(df_fechado, 'Data_Fechamento', hoje),
        volume_orcado=_volume(df_orcado, 'Data_Emissao', hoje),
        top_estados=agrupar_por(df_orcado, 'estado'),
        top_origens=agrupar_por(df_orcado, 'origem'),
        top_profissionais=agrupar_por(df_orcado, 'profissional'),
    )


def resumo_profissionais(serie: Serie, total: float, limite: int = 3):
    """Top N profissionais com participação no total e quantos ficaram de fora."""
    destaque = [
        (nome, valor, (valor / total * 100) if total > 0 else 0.0)
        for nome, valor in serie[:limite]
    ]
    return destaque, max(len(serie) - limite, 0)
