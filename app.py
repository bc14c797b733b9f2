# Importa as bibliotecas necessárias
from datetime import date, datetime

import pandas as pd
import streamlit as st

# ==============================================================================
# IMPORTS DOS MÓDULOS
# ==============================================================================

# Módulo 1: Constantes e logging
from painel.config import (
    CATEGORIAS_OPCOES,
    FILTROS_CATEGORIA,
    INTERVALO_ATUALIZACAO_TELA,
    STATUS_OPCOES,
    TEXTO_CONFIRMACAO_EXCLUSAO,
    configurar_logging,
)

# Módulo 2: Funções de Tratamento e Formatação
from painel.tratamento import formatar_milhar_br, formatar_moeda_br, normalizar_valor_br, valor_para_texto_br

# Módulo 3: Row Store (pedidos, filtros e busca)
from painel.dados import buscar_pedidos, filtrar_pedidos

# Módulo 4: Cálculo de KPIs e séries
from painel.kpi import calcular_metricas, resumo_profissionais

# Módulo 5: Gráficos
from painel.graficos import CORES_CATEGORIA, figura_mapa_estados, figura_origens, serie_para_dataframe

# Módulo 6: Canal em tempo real e operações
from painel.executor import ExecutorCanal
from painel.operacoes import ServicoPedidos, confirmacao_valida
from painel.erros import ErroValidacao

# ==============================================================================
# CONFIGURAÇÃO E CONEXÃO INICIAL
# ==============================================================================

st.set_page_config(layout="wide", page_title="Painel de Vendas")
configurar_logging()


@st.cache_resource
def obter_executor():
    """Um único cliente de canal por processo do Streamlit, com ciclo de vida explícito."""
    executor = ExecutorCanal()
    executor.iniciar()
    return executor


executor = obter_executor()
cliente = executor.cliente

# Inicialização do Estado
if 'categoria' not in st.session_state:
    st.session_state['categoria'] = 'Geral'
# Avisos de falha pertencem à sessão de quem fez a operação
if 'servico' not in st.session_state:
    st.session_state['servico'] = ServicoPedidos(cliente)
servico = st.session_state['servico']


def mostrar_avisos():
    """Exibe (e descarta) os avisos de falha registrados pelas operações."""
    for aviso in servico.descartar_avisos():
        if aviso.tipo == 'erro':
            st.error(f"❌ {aviso.mensagem}\n\n{aviso.descricao}")
        else:
            st.success(aviso.mensagem)


def executar_operacao(corotina):
    """Roda a operação no loop do canal. Erros de validação viram aviso na tela."""
    try:
        ok = executor.executar(corotina)
    except ErroValidacao as e:
        st.warning(f"⚠️ {e}")
        return False
    mostrar_avisos()
    return ok


# ==============================================================================
# BARRA LATERAL
# ==============================================================================
st.sidebar.header("Navegação")
visao = st.sidebar.radio("Visão:", ["Dashboard", "Negócios"])

if visao == "Dashboard":
    categoria = st.sidebar.radio("Categoria:", list(FILTROS_CATEGORIA), key='categoria')


# ==============================================================================
# CABEÇALHO (CONEXÃO, ÚLTIMA ATUALIZAÇÃO E RELÓGIO)
# ==============================================================================
@st.fragment(run_every=f"{INTERVALO_ATUALIZACAO_TELA}s")
def render_cabecalho():
    col_titulo, col_status, col_relogio = st.columns([4, 2, 1])
    with col_titulo:
        st.title("📊 Painel de Vendas")
    with col_status:
        if cliente.is_connected:
            st.success("🟢 Conectado")
        else:
            st.error("🔴 Desconectado")
        ultima = cliente.snapshot.ultima_atualizacao
        st.caption(f"Última atualização: {ultima or '--'}")
    with col_relogio:
        st.metric(label="Hora", value=datetime.now().strftime("%H:%M:%S"))


render_cabecalho()
st.markdown("---")


# ==============================================================================
# VISÃO 1. DASHBOARD
# ==============================================================================
@st.fragment(run_every=f"{INTERVALO_ATUALIZACAO_TELA}s")
def render_dashboard(categoria):
    pedidos = cliente.snapshot.pedidos

    # Pedidos da aba (o mapa sempre mostra todos os estados da categoria)
    pedidos_categoria = filtrar_pedidos(pedidos, categoria)
    metricas_mapa = calcular_metricas(pedidos_categoria)

    # Estado selecionado afeta apenas os KPIs
    opcoes_estado = ['Todos'] + [nome for nome, _ in metricas_mapa.top_estados]
    estado_sel = st.selectbox("Filtrar KPIs por estado:", opcoes_estado)
    estado_filtro = None if estado_sel == 'Todos' else estado_sel

    pedidos_kpi = filtrar_pedidos(pedidos_categoria, 'Geral', estado_filtro)
    metricas_kpi = calcular_metricas(pedidos_kpi)

    # --------------------------------------------------------------------------
    # KPIs: Volume Fechado e Volume Orçado
    # --------------------------------------------------------------------------
    col1, col2 = st.columns(2)
    with col1:
        st.metric(label="VOLUME FECHADO", value=formatar_moeda_br(metricas_kpi.volume_fechado.total, 0))
        st.caption(
            f"Hoje: {formatar_moeda_br(metricas_kpi.volume_fechado.hoje, 0)} | "
            f"Mês: {formatar_moeda_br(metricas_kpi.volume_fechado.mes, 0)}"
        )
    with col2:
        st.metric(
            label="VOLUME ORÇADO",
            value=formatar_moeda_br(metricas_kpi.volume_orcado.total, 0),
            delta=f"{metricas_kpi.taxa_conversao}% convertido",
            delta_color="off",
        )
        st.caption(
            f"Hoje: {formatar_moeda_br(metricas_kpi.volume_orcado.hoje, 0)} | "
            f"Mês: {formatar_moeda_br(metricas_kpi.volume_orcado.mes, 0)}"
        )

    st.markdown("---")

    # --------------------------------------------------------------------------
    # Mapa por UF
    # --------------------------------------------------------------------------
    st.subheader("Curva ABC - UF")
    if metricas_mapa.top_estados:
        st.plotly_chart(
            figura_mapa_estados(metricas_mapa.top_estados, CORES_CATEGORIA.get(categoria, '#1E293B')),
            use_container_width=True,
        )
    else:
        st.info("Nenhum pedido ativo para exibir no mapa.")

    col_origem, col_prof = st.columns(2)

    # --------------------------------------------------------------------------
    # Origens
    # --------------------------------------------------------------------------
    with col_origem:
        st.subheader("Origem")
        if metricas_kpi.top_origens:
            st.plotly_chart(figura_origens(metricas_kpi.top_origens), use_container_width=True)
        else:
            st.info("Sem dados de origem.")

    # --------------------------------------------------------------------------
    # Profissionais (Top 3)
    # --------------------------------------------------------------------------
    with col_prof:
        st.subheader("Profissionais")
        total_prof = sum(valor for _, valor in metricas_kpi.top_profissionais)
        destaque, restantes = resumo_profissionais(metricas_kpi.top_profissionais, total_prof)
        for nome, valor, percentual in destaque:
            st.markdown(f"**{nome}**: {formatar_moeda_br(valor, 0)}")
            st.progress(min(int(percentual), 100))
        if restantes:
            st.caption(f"+ {restantes} outros...")
        if not destaque:
            st.info("Sem dados de profissionais.")

    with st.expander("Tabela por UF"):
        st.dataframe(serie_para_dataframe(metricas_mapa.top_estados, 'Estado'), use_container_width=True)


# ==============================================================================
# VISÃO 2. NEGÓCIOS (TABELA E CADASTROS)
# ==============================================================================
def tabela_pedidos(pedidos):
    df = pd.DataFrame([p.para_dict() for p in pedidos])
    if df.empty:
        return df
    df['valor'] = df['valor'].map(formatar_moeda_br)
    return df[[
        'id', 'data_emissao', 'cliente', 'categoria', 'origem', 'produto',
        'valor', 'status', 'data_fechamento', 'cidade', 'estado', 'profissional',
    ]].rename(columns={
        'id': 'Pedido', 'data_emissao': 'Emissão', 'cliente': 'Cliente', 'categoria': 'Categoria',
        'origem': 'Origem', 'produto': 'Produto', 'valor': 'Valor', 'status': 'Status',
        'data_fechamento': 'Fechamento', 'cidade': 'Cidade', 'estado': 'UF', 'profissional': 'Profissional',
    })


def render_negocios():
    pedidos = cliente.snapshot.pedidos

    termo = st.text_input("Buscar por cliente, pedido ou categoria...")
    encontrados = buscar_pedidos(pedidos, termo)
    st.caption(f"{formatar_milhar_br(len(encontrados))} de {formatar_milhar_br(len(pedidos))} pedidos")
    st.dataframe(tabela_pedidos(encontrados), use_container_width=True, hide_index=True)

    ids = [p.id for p in pedidos]
    aba_status, aba_novo, aba_editar, aba_excluir = st.tabs(
        ["Alterar Status", "Novo Pedido", "Editar Pedido", "Excluir Pedido"]
    )

    # --- Status ---
    with aba_status:
        if ids:
            col_id, col_status, col_botao = st.columns([2, 2, 1])
            id_status = col_id.selectbox("Pedido:", ids, key='status_id')
            atual = cliente.snapshot.buscar(id_status)
            indice = STATUS_OPCOES.index(atual.status) if atual and atual.status in STATUS_OPCOES else 0
            novo_status = col_status.selectbox("Status:", STATUS_OPCOES, index=indice, key='status_novo')
            if col_botao.button("Salvar", key='status_salvar'):
                executar_operacao(servico.atualizar_status(id_status, novo_status))
        else:
            st.info("Nenhum pedido cadastrado.")

    # --- Novo pedido ---
    with aba_novo:
        with st.form("form_novo_pedido", clear_on_submit=True):
            c1, c2 = st.columns(2)
            pedido_original = c1.text_input("Pedido")
            data_emissao = c2.text_input("Data de emissão", value=date.today().strftime('%d/%m/%Y'))
            cliente_nome = st.text_input("Cliente")
            c3, c4 = st.columns(2)
            categoria = c3.selectbox("Categoria", CATEGORIAS_OPCOES)
            origem = c4.text_input("Origem")
            c5, c6 = st.columns(2)
            produto = c5.text_input("Produto")
            valor = c6.text_input("Valor (R$)", placeholder="0,00")
            c7, c8 = st.columns(2)
            status = c7.selectbox("Status", STATUS_OPCOES)
            data_fechamento = c8.text_input("Data de fechamento")
            c9, c10 = st.columns(2)
            cidade = c9.text_input("Cidade")
            estado = c10.text_input("UF")

            if st.form_submit_button("CADASTRAR"):
                formulario = {
                    'pedido_original': pedido_original.strip(),
                    'data_emissao': data_emissao.strip(),
                    'cliente': cliente_nome.strip(),
                    'categoria': categoria,
                    'origem': origem.strip(),
                    'produto': produto.strip(),
                    'valor': normalizar_valor_br(valor),
                    'status': status,
                    'data_fechamento': data_fechamento.strip(),
                    'cidade': cidade.strip(),
                    'estado': estado.strip(),
                }
                if not formulario['pedido_original']:
                    st.warning("⚠️ Informe o número do pedido.")
                elif executar_operacao(servico.criar_pedido(formulario)):
                    st.success("Pedido cadastrado.")

    # --- Editar pedido ---
    with aba_editar:
        if ids:
            id_editar = st.selectbox("Pedido:", ids, key='editar_id')
            atual = cliente.snapshot.buscar(id_editar)
            if atual is not None:
                with st.form("form_editar_pedido"):
                    c1, c2 = st.columns(2)
                    data_emissao = c1.text_input("Data de emissão", value=atual.data_emissao)
                    cliente_nome = c2.text_input("Cliente", value=atual.cliente)
                    c3, c4 = st.columns(2)
                    categorias = CATEGORIAS_OPCOES if atual.categoria in CATEGORIAS_OPCOES else CATEGORIAS_OPCOES + [atual.categoria]
                    categoria = c3.selectbox("Categoria", categorias, index=categorias.index(atual.categoria))
                    origem = c4.text_input("Origem", value=atual.origem)
                    c5, c6 = st.columns(2)
                    produto = c5.text_input("Produto", value=atual.produto)
                    valor = c6.text_input("Valor (R$)", value=valor_para_texto_br(atual.valor))
                    c7, c8 = st.columns(2)
                    status_opcoes = STATUS_OPCOES if atual.status in STATUS_OPCOES else STATUS_OPCOES + [atual.status]
                    status = c7.selectbox("Status", status_opcoes, index=status_opcoes.index(atual.status))
                    data_fechamento = c8.text_input("Data de fechamento", value=atual.data_fechamento or '')
                    c9, c10 = st.columns(2)
                    cidade = c9.text_input("Cidade", value=atual.cidade)
                    estado = c10.text_input("UF", value=atual.estado)

                    if st.form_submit_button("SALVAR ALTERAÇÕES"):
                        campos = {
                            'id': atual.id,
                            'data_emissao': data_emissao.strip(),
                            'cliente': cliente_nome.strip(),
                            'categoria': categoria,
                            'origem': origem.strip(),
                            'produto': produto.strip(),
                            'valor': normalizar_valor_br(valor),
                            'status': status,
                            'data_fechamento': data_fechamento.strip(),
                            'cidade': cidade.strip(),
                            'estado': estado.strip(),
                        }
                        if executar_operacao(servico.atualizar_pedido(atual.id, campos)):
                            st.success("Pedido atualizado.")
        else:
            st.info("Nenhum pedido cadastrado.")

    # --- Excluir pedido ---
    with aba_excluir:
        if ids:
            id_excluir = st.selectbox("Pedido:", ids, key='excluir_id')
            st.warning(f"Você está prestes a excluir o pedido **{id_excluir}**. Esta ação não pode ser desfeita.")
            confirmacao = st.text_input(
                f"Digite {TEXTO_CONFIRMACAO_EXCLUSAO} para liberar a exclusão:",
                placeholder=TEXTO_CONFIRMACAO_EXCLUSAO,
                key='excluir_confirmacao',
            )
            if st.button("EXCLUIR", disabled=not confirmacao_valida(confirmacao)):
                if executar_operacao(servico.excluir_pedido(id_excluir, confirmacao)):
                    st.success("Pedido excluído.")
        else:
            st.info("Nenhum pedido cadastrado.")


# --- Aplicação Streamlit (Interface) ---
if visao == "Dashboard":
    render_dashboard(categoria)
else:
    render_negocios()
