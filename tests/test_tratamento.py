# tests/test_tratamento.py
from datetime import date

from painel.config import ESTADOS_BRASIL
from painel.tratamento import (
    calcular_percentual,
    formatar_milhar_br,
    formatar_moeda_br,
    normalizar_valor_br,
    normalizar_estado,
    parse_data_br,
    parse_valor_br,
    valor_para_texto_br,
)


def test_formatar_milhar_br():
    assert formatar_milhar_br(1234567) == "1.234.567"
    assert formatar_milhar_br(0) == "0"
    assert formatar_milhar_br("abc") == "abc"


def test_formatar_moeda_br():
    assert formatar_moeda_br(1234.5) == "R$ 1.234,50"
    assert formatar_moeda_br(1234.5, 0) == "R$ 1.234"
    assert formatar_moeda_br(0) == "R$ 0,00"
    assert formatar_moeda_br(-10) == "-R$ 10,00"


def test_valor_para_texto_br():
    assert valor_para_texto_br(1000000.1) == "1.000.000,10"


def test_parse_valor_br():
    assert parse_valor_br("1.234,56") == 1234.56
    assert parse_valor_br("R$ 10,00") == 10.0
    assert parse_valor_br(99) == 99.0
    assert parse_valor_br(None) == 0.0
    assert parse_valor_br("abc") == 0.0


def test_normalizar_valor_br_nao_divide_por_cem():
    assert normalizar_valor_br("1500") == "1.500,00"
    assert normalizar_valor_br("1.500") == "1.500,00"
    assert normalizar_valor_br("1.234,56") == "1.234,56"
    assert normalizar_valor_br("R$ 10,5") == "10,50"
    assert normalizar_valor_br(1500.0) == "1.500,00"
    assert normalizar_valor_br("") == "0,00"


def test_parse_valor_br_ponto_decimal():
    assert parse_valor_br("1500.5") == 1500.5
    assert parse_valor_br("1500.50") == 1500.5
    assert parse_valor_br("1.500.000") == 1500000.0


def test_parse_data_br():
    assert parse_data_br("19/10/2026") == date(2026, 10, 19)
    assert parse_data_br("2026-10-19") == date(2026, 10, 19)
    assert parse_data_br("31/02/2026") is None
    assert parse_data_br("ontem") is None
    assert parse_data_br("") is None
    assert parse_data_br(None) is None


def test_normalizar_estado_siglas_e_nomes():
    assert normalizar_estado("SP") == "São Paulo"
    assert normalizar_estado("sp") == "São Paulo"
    assert normalizar_estado("SAO PAULO") == "São Paulo"
    assert normalizar_estado("ceará") == "Ceará"
    assert normalizar_estado("  rj ") == "Rio de Janeiro"


def test_normalizar_estado_sem_mapeamento_passa_direto():
    assert normalizar_estado("Buenos Aires") == "Buenos Aires"
    assert normalizar_estado("") == ""
    assert normalizar_estado(None) == ""


def test_normalizar_estado_idempotente():
    for nome in ESTADOS_BRASIL.values():
        assert normalizar_estado(nome) == nome
        assert normalizar_estado(normalizar_estado(nome)) == nome


def test_calcular_percentual():
    assert calcular_percentual(25, 100) == 25.0
    assert calcular_percentual(10, 0) == 0.0
