# Módulo: config.py
import logging.config
import os

# ==============================================================================
# 📌 CONEXÃO COM O BACKEND (CANAL EM TEMPO REAL)
# ==============================================================================
# URL base do socket. Pode vir como http(s):// ou ws(s)://, o canal converte.
URL_API = os.getenv('PAINEL_API_URL', 'ws://localhost:4000/socket')
# Token estático repassado como parâmetro do socket (sem lógica de autenticação)
TOKEN_SOCKET = os.getenv('PAINEL_TOKEN', '123')
# Tópico único do painel
TOPICO_PAINEL = 'dashboard:main'
# Versão do serializador JSON do Phoenix (frames em lista)
VERSAO_SERIALIZADOR = '2.0.0'
# Tempo máximo (segundos) esperando a confirmação de um push
TIMEOUT_PUSH = float(os.getenv('PAINEL_TIMEOUT_PUSH', '10'))
# Intervalo (segundos) entre heartbeats
INTERVALO_HEARTBEAT = 30.0
# Espera (segundos) antes de refazer a conexão quando o transporte desiste
INTERVALO_RECONEXAO = 5.0
# Intervalo (segundos) entre redesenhos automáticos do painel
INTERVALO_ATUALIZACAO_TELA = int(os.getenv('PAINEL_REFRESH', '2'))

# O servidor entrega o snapshot completo sob qualquer um destes dois eventos
EVENTOS_SNAPSHOT = ('new_data', 'update_data')

# Comandos aceitos pelo servidor
EVENTO_CRIAR = 'add_order'
EVENTO_STATUS = 'update_status'
EVENTO_ATUALIZAR = 'update_row'
EVENTO_EXCLUIR = 'delete_row'

# ==============================================================================
# 📌 CONSTANTES DE NEGÓCIO
# ==============================================================================
STATUS_EM_ANDAMENTO = 'Em andamento'
STATUS_GANHO = 'Ganho'
STATUS_PERDIDO = 'Perdido'
STATUS_OPCOES = [STATUS_EM_ANDAMENTO, STATUS_GANHO, STATUS_PERDIDO]

# Valor usado quando o backend não informa o profissional
PROFISSIONAL_PADRAO = 'N/A'

# Abas de categoria do painel: 'Geral' não filtra, as demais comparam a coluna 'categoria'
CATEGORIA_GERAL = 'Geral'
FILTROS_CATEGORIA = {
    'Geral': None,
    'Orglight': 'ORGLIGHT',
    'Perfil': 'PERFIL',
}
CATEGORIAS_OPCOES = ['Projetos', 'Iluminação Técnica', 'Pendentes e Lustres', 'ORGLIGHT', 'PERFIL']

# Literal que o usuário precisa digitar para liberar a exclusão
TEXTO_CONFIRMACAO_EXCLUSAO = 'CONFIRMAR'

# Ordem das colunas do array enviado em 'add_order' (a posição importa)
COLUNAS_CRIACAO = [
    'id', 'pedido_original', 'data_emissao', 'cliente', 'categoria', 'origem',
    'produto', 'valor', 'status', 'data_fechamento', 'cidade', 'estado',
]

# Campos editáveis no formulário de edição
COLUNAS_EDITAVEIS = [
    'data_emissao', 'cliente', 'categoria', 'origem', 'produto', 'valor',
    'status', 'data_fechamento', 'cidade', 'estado',
]

# ==============================================================================
# 📌 LOGGING
# ==============================================================================
NIVEL_LOG = os.getenv('PAINEL_LOG_LEVEL', 'INFO').upper()

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'padrao': {
            'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'padrao',
            'level': NIVEL_LOG,
        },
    },
    'loggers': {
        'painel': {
            'handlers': ['console'],
            'level': NIVEL_LOG,
            'propagate': False,
        },
    },
}


def configurar_logging():
    """Aplica a configuração de logging do painel."""
    logging.config.dictConfig(LOGGING_CONFIG)

# ==============================================================================
# 📌 UNIDADES FEDERATIVAS
# ==============================================================================
# Sigla -> nome completo (o nome completo é a chave usada no mapa)
ESTADOS_BRASIL = {
    'AC': 'Acre', 'AL': 'Alagoas', 'AP': 'Amapá', 'AM': 'Amazonas',
    'BA': 'Bahia', 'CE': 'Ceará', 'DF': 'Distrito Federal', 'ES': 'Espírito Santo',
    'GO': 'Goiás', 'MA': 'Maranhão', 'MT': 'Mato Grosso', 'MS': 'Mato Grosso do Sul',
    'MG': 'Minas Gerais', 'PA': 'Pará', 'PB': 'Paraíba', 'PR': 'Paraná',
    'PE': 'Pernambuco', 'PI': 'Piauí', 'RJ': 'Rio de Janeiro', 'RN': 'Rio Grande do Norte',
    'RS': 'Rio Grande do Sul', 'RO': 'Rondônia', 'RR': 'Roraima', 'SC': 'Santa Catarina',
    'SP': 'São Paulo', 'SE': 'Sergipe', 'TO': 'Tocantins',
}
