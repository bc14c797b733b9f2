# Módulo: graficos.py
import pandas as pd
import plotly.express as px

from painel.tratamento import calcular_percentual, formatar_moeda_br

# Coordenadas aproximadas das capitais (lat, lon), chave = nome completo do estado
COORDENADAS_ESTADOS = {
    'Acre': (-9.97, -67.81), 'Alagoas': (-9.67, -35.74), 'Amapá': (0.03, -51.07),
    'Amazonas': (-3.12, -60.02), 'Bahia': (-12.97, -38.50), 'Ceará': (-3.73, -38.52),
    'Distrito Federal': (-15.79, -47.88), 'Espírito Santo': (-20.32, -40.34),
    'Goiás': (-16.68, -49.25), 'Maranhão': (-2.53, -44.30), 'Mato Grosso': (-15.60, -56.10),
    'Mato Grosso do Sul': (-20.47, -54.62), 'Minas Gerais': (-19.92, -43.94),
    'Pará': (-1.46, -48.50), 'Paraíba': (-7.12, -34.86), 'Paraná': (-25.43, -49.27),
    'Pernambuco': (-8.05, -34.88), 'Piauí': (-5.09, -42.80), 'Rio de Janeiro': (-22.91, -43.17),
    'Rio Grande do Norte': (-5.79, -35.21), 'Rio Grande do Sul': (-30.03, -51.23),
    'Rondônia': (-8.76, -63.90), 'Roraima': (2.82, -60.67), 'Santa Catarina': (-27.60, -48.55),
    'São Paulo': (-23.55, -46.63), 'Sergipe': (-10.91, -37.07), 'Tocantins': (-10.18, -48.33),
}

# Cor principal por aba de categoria
CORES_CATEGORIA = {
    'Geral': '#1E293B',
    'Orglight': '#f75900',
    'Perfil': '#475569',
}


def serie_para_dataframe(serie, nome_coluna):
    """Série [(nome, valor)] -> DataFrame com participação (%) e texto formatado."""
    df = pd.DataFrame(serie, columns=[nome_coluna, 'Valor'])
    total = df['Valor'].sum()
    df['Participação (%)'] = df['Valor'].map(lambda v: round(calcular_percentual(v, total), 1))
    df['Valor Texto'] = df['Valor'].map(formatar_moeda_br)
    return df


def figura_mapa_estados(serie_estados, cor='#1E293B'):
    """Bolhas por estado sobre o Brasil; o tamanho acompanha o volume."""
    df = serie_para_dataframe(serie_estados, 'Estado')
    # Estados fora da tabela de coordenadas (texto livre) não entram no mapa
    df = df[df['Estado'].isin(COORDENADAS_ESTADOS)].copy()
    df['lat'] = df['Estado'].map(lambda e: COORDENADAS_ESTADOS[e][0])
    df['lon'] = df['Estado'].map(lambda e: COORDENADAS_ESTADOS[e][1])

    fig = px.scatter_geo(
        df,
        lat='lat',
        lon='lon',
        size='Valor',
        hover_name='Estado',
        custom_data=['Estado'],
        hover_data={'Valor Texto': True, 'Participação (%)': True, 'lat': False, 'lon': False, 'Valor': False},
        color_discrete_sequence=[cor],
        height=450,
    )
    fig.update_geos(
        scope='south america',
        center={'lat': -14.2, 'lon': -51.9},
        projection_scale=2.2,
        showcountries=True,
    )
    fig.update_layout(margin={'l': 0, 'r': 0, 't': 0, 'b': 0})
    return fig


def figura_origens(serie_origens):
    """Pizza de participação por origem."""
    df = serie_para_dataframe(serie_origens, 'Origem')
    fig = px.pie(
        df,
        names='Origem',
        values='Valor',
        hole=0.5,
        height=350,
    )
    fig.update_traces(textinfo='percent', hovertemplate='%{label}: %{percent}')
    fig.update_layout(margin={'l': 0, 'r': 0, 't': 20, 'b': 0})
    return fig
