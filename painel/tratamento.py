# Módulo: tratamento.py
import re
import unicodedata
from datetime import date, datetime

import pandas as pd

from painel.config import ESTADOS_BRASIL

# ==============================================================================
# FUNÇÕES DE FORMATAÇÃO (PADRÃO BRASILEIRO)
# ==============================================================================
def valor_para_texto_br(valor, casas=2):
    """1234.5 -> '1.234,50'. Usado para preencher os campos de valor dos formulários."""
    return f"{float(valor):,.{casas}f}".replace(",", "X").replace(".", ",").replace("X", ".")

def formatar_milhar_br(valor):
    """Contagens com ponto de milhar: 1234 -> '1.234'. Texto passa direto."""
    if isinstance(valor, (int, float)) and not pd.isna(valor):
        return valor_para_texto_br(valor, 0)
    return str(valor)

def formatar_moeda_br(valor, casas=2):
    """Formata em Real: 1234.5 -> 'R$ 1.234,50'."""
    if not isinstance(valor, (int, float)) or pd.isna(valor):
        return str(valor)
    sinal = '-' if valor < 0 else ''
    return f"{sinal}R$ {valor_para_texto_br(abs(valor), casas)}"

def calcular_percentual(parte, total):
    """Participação de 'parte' em 'total', em %. Zero quando o total é zero."""
    if total > 0:
        return (parte / total) * 100
    return 0.0

# ==============================================================================
# FUNÇÕES DE LEITURA (TEXTO -> VALOR)
# ==============================================================================
def parse_valor_br(valor):
    """
    Converte um valor monetário brasileiro em float.
    '1.234,56' -> 1234.56 ; 'R$ 10,00' -> 10.0 ; '1500' -> 1500.0 ; números passam direto.
    Sem vírgula, um único ponto seguido de 1 ou 2 dígitos é lido como decimal ('1500.5').
    Texto ilegível vira 0.0.
    """
    if valor is None:
        return 0.0
    if isinstance(valor, (int, float)):
        return 0.0 if pd.isna(valor) else float(valor)
    texto = re.sub(r'[^0-9,.\-]', '', str(valor))
    if ',' not in texto and re.fullmatch(r'-?\d*\.\d{1,2}', texto):
        texto = texto.replace('.', ',')
    texto = texto.replace('.', '').replace(',', '.')
    try:
        return float(texto)
    except ValueError:
        return 0.0

def normalizar_valor_br(valor):
    """
    Valor digitado (ou numérico) -> texto pt-BR com centavos, formato em que
    o servidor grava o campo. '1500' -> '1.500,00' ; 1500.0 -> '1.500,00'.
    """
    return valor_para_texto_br(parse_valor_br(valor))

def parse_data_br(texto):
    """
    Lê uma data no formato DD/MM/AAAA (formato da planilha). Aceita ISO
    (AAAA-MM-DD) como alternativa. Retorna None quando não é possível ler.
    """
    if texto is None:
        return None
    if isinstance(texto, datetime):
        return texto.date()
    if isinstance(texto, date):
        return texto
    texto = str(texto).strip()
    if not texto:
        return None
    partes = texto.split('/')
    if len(partes) == 3:
        try:
            return date(int(partes[2]), int(partes[1]), int(partes[0]))
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(texto).date()
    except ValueError:
        return None


# ==============================================================================
# NORMALIZAÇÃO DE ESTADOS
# ==============================================================================
def remover_acentos(texto):
    return ''.join(
        c for c in unicodedata.normalize('NFKD', texto) if not unicodedata.combining(c)
    )

def _montar_mapa_estados():
    mapa = {}
    for sigla, nome in ESTADOS_BRASIL.items():
        mapa[sigla] = nome
        mapa[nome.upper()] = nome
        mapa[remover_acentos(nome).upper()] = nome
    return mapa

MAPA_ESTADOS = _montar_mapa_estados()

def normalizar_estado(valor):
    """
    Converte sigla ou nome (com ou sem acento, qualquer caixa) no nome completo
    usado pelo mapa. Valores não mapeados voltam como vieram.
    """
    if not valor:
        return ""
    chave = remover_acentos(str(valor).strip()).upper()
    return MAPA_ESTADOS.get(chave, MAPA_ESTADOS.get(str(valor).strip().upper(), valor))
