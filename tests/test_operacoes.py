# tests/test_operacoes.py
import asyncio

import pytest

from painel.canal import ClienteCanal
from painel.dados import Pedido
from painel.erros import ErroComando, ErroConexao, ErroConfirmacao, ErroPedidoDuplicado, ErroTimeout
from painel.operacoes import ServicoPedidos, confirmacao_valida

from conftest import ClienteFalso, SocketFalso, conector, servidor

FORMULARIO = {
    "pedido_original": "123", "data_emissao": "19/10/2026", "cliente": "ACME",
    "categoria": "ORGLIGHT", "origem": "Site", "produto": "WidgetA", "valor": "1.234,56",
    "status": "Em andamento", "data_fechamento": "", "cidade": "Campinas", "estado": "SP",
}


def test_criar_pedido_duplicado_e_barrado_antes_do_push():
    cliente = ClienteFalso([Pedido(id="123-WidgetA")])
    servico = ServicoPedidos(cliente)
    formulario = dict(FORMULARIO, produto="widgeta")

    with pytest.raises(ErroPedidoDuplicado) as info:
        asyncio.run(servico.criar_pedido(formulario))

    assert "123-widgeta" in str(info.value)
    assert cliente.pushes == []
    assert cliente.snapshot.ids() == ["123-WidgetA"]


def test_criar_pedido_sem_produto_compara_so_o_numero():
    cliente = ClienteFalso([Pedido(id="123")])
    servico = ServicoPedidos(cliente)
    with pytest.raises(ErroPedidoDuplicado):
        asyncio.run(servico.criar_pedido(dict(FORMULARIO, produto="")))
    assert cliente.pushes == []


def test_criar_pedido_otimista_e_push():
    cliente = ClienteFalso([Pedido(id="1")])
    servico = ServicoPedidos(cliente)

    assert asyncio.run(servico.criar_pedido(FORMULARIO)) is True

    assert cliente.snapshot.ids() == ["1", "123-WidgetA"]
    novo = cliente.snapshot.buscar("123-WidgetA")
    assert novo.valor == 1234.56
    assert novo.profissional == "N/A"
    assert novo.data_fechamento is None

    evento, payload = cliente.pushes[0]
    assert evento == "add_order"
    assert payload["row"] == [
        "", "123", "19/10/2026", "ACME", "ORGLIGHT", "Site", "WidgetA", "1.234,56",
        "Em andamento", "", "Campinas", "SP",
    ]
    assert servico.avisos == []


def test_criar_pedido_com_id_sequencial():
    cliente = ClienteFalso()
    servico = ServicoPedidos(cliente)
    asyncio.run(servico.criar_pedido(FORMULARIO, id_sequencial="42"))
    assert cliente.snapshot.ids() == ["42"]
    assert cliente.pushes[0][1]["row"][0] == "42"


def test_falha_no_push_registra_aviso_sem_desfazer():
    avisados = []
    cliente = ClienteFalso(erro=ErroComando("add_order", {"reason": "planilha indisponível"}))
    servico = ServicoPedidos(cliente, ao_avisar=avisados.append)

    assert asyncio.run(servico.criar_pedido(FORMULARIO)) is False

    assert cliente.snapshot.ids() == ["123-WidgetA"]
    assert len(servico.avisos) == 1
    assert servico.avisos[0].tipo == "erro"
    assert "criar pedido" in servico.avisos[0].mensagem
    assert avisados == servico.avisos
    assert len(servico.descartar_avisos()) == 1
    assert servico.avisos == []


def test_atualizar_status_otimista():
    cliente = ClienteFalso([Pedido(id="1", status="Em andamento")])
    servico = ServicoPedidos(cliente)
    assert asyncio.run(servico.atualizar_status("1", "Ganho"))
    assert cliente.snapshot.buscar("1").status == "Ganho"
    assert cliente.pushes == [("update_status", {"id": "1", "status": "Ganho"})]


def test_atualizar_pedido_mescla_campos():
    cliente = ClienteFalso([Pedido(id="1", cliente="Velho", valor=10)])
    servico = ServicoPedidos(cliente)
    campos = {"cliente": "Novo", "valor": "2.500,00"}
    assert asyncio.run(servico.atualizar_pedido("1", campos))
    pedido = cliente.snapshot.buscar("1")
    assert pedido.cliente == "Novo"
    assert pedido.valor == 2500.0
    assert cliente.pushes == [("update_row", {"id": "1", "row": campos})]


def test_excluir_exige_confirmacao():
    cliente = ClienteFalso([Pedido(id="1")])
    servico = ServicoPedidos(cliente)
    for texto in ("", "confirmar", "CONFIRMAR "):
        with pytest.raises(ErroConfirmacao):
            asyncio.run(servico.excluir_pedido("1", texto))
    assert cliente.snapshot.ids() == ["1"]
    assert cliente.pushes == []


def test_excluir_pedido():
    cliente = ClienteFalso([Pedido(id="1"), Pedido(id="2")])
    servico = ServicoPedidos(cliente)
    assert asyncio.run(servico.excluir_pedido("1", "CONFIRMAR"))
    assert cliente.snapshot.ids() == ["2"]
    assert cliente.pushes == [("delete_row", {"id": "1"})]


def test_confirmacao_valida():
    assert confirmacao_valida("CONFIRMAR")
    assert not confirmacao_valida("confirmar")


def test_sem_conexao_vira_aviso():
    cliente = ClienteFalso([Pedido(id="1")], erro=ErroConexao())
    servico = ServicoPedidos(cliente)
    assert asyncio.run(servico.atualizar_status("1", "Perdido")) is False
    assert cliente.snapshot.buscar("1").status == "Perdido"
    assert "Not connected" in servico.avisos[0].descricao


def test_timeout_no_update_status_mantem_status_otimista():
    """Canal real: o servidor nunca confirma 'update_status'."""
    async def cenario():
        ws = SocketFalso(servidor(
            {"rows": [{"id": "1", "status": "Ganho", "valor": 1000}], "last_updated": "t0"},
            {"update_status": (None, None)},
        ))
        cliente = ClienteCanal(url_base="ws://teste/socket", timeout_push=0.05,
                               intervalo_heartbeat=60, conectar=conector(ws))
        servico = ServicoPedidos(cliente)
        await cliente.conectar()
        await asyncio.wait_for(cliente.ingressado.wait(), 1)

        ok = await servico.atualizar_status("1", "Perdido")

        assert ok is False
        assert cliente.snapshot.buscar("1").status == "Perdido"
        assert len(servico.avisos) == 1
        assert "Timeout" in servico.avisos[0].descricao
        assert ws.eventos_enviados()[-1] == "update_status"
        await cliente.desconectar()

    asyncio.run(cenario())


def test_erro_timeout_e_um_erro_de_comando():
    assert issubclass(ErroTimeout, ErroComando)


def test_criar_pedido_com_valor_numerico_vai_como_texto_br():
    cliente = ClienteFalso()
    servico = ServicoPedidos(cliente)
    asyncio.run(servico.criar_pedido({"pedido_original": "9", "produto": "X", "valor": 1500.0}))
    assert cliente.pushes[0][1]["row"][7] == "1.500,00"
    assert cliente.snapshot.buscar("9-X").valor == 1500.0


def test_atualizar_pedido_normaliza_valor_no_envio():
    cliente = ClienteFalso([Pedido(id="1", valor=10)])
    servico = ServicoPedidos(cliente)
    asyncio.run(servico.atualizar_pedido("1", {"valor": "1500"}))
    assert cliente.snapshot.buscar("1").valor == 1500.0
    assert cliente.pushes == [("update_row", {"id": "1", "row": {"valor": "1.500,00"}})]


def test_avisos_sao_de_cada_servico():
    cliente = ClienteFalso([Pedido(id="1")], erro=ErroConexao())
    sessao_a = ServicoPedidos(cliente)
    sessao_b = ServicoPedidos(cliente)
    asyncio.run(sessao_a.atualizar_status("1", "Ganho"))
    assert len(sessao_a.avisos) == 1
    assert sessao_b.descartar_avisos() == []
    assert len(sessao_a.avisos) == 1
