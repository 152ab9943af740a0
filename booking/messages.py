"""User-facing strings of the booking flow (pt-BR)."""

UNIT_REQUIRED = "Selecione a unidade"
DATE_REQUIRED = "Selecione uma data"
DATE_IN_PAST = "Selecione uma data a partir de hoje"
TIME_REQUIRED = "Selecione um horário"
SLOT_NOT_ALLOWED = "Escolha um horário válido da lista"
TIME_ALREADY_PASSED = "Esse horário já passou. Escolha outro horário."
PARTY_TOO_SMALL = "Informe ao menos 1 adulto"
LARGE_GROUP_NOTICE = (
    "Para grupos grandes, fale com a nossa equipe para organizarmos sua reserva."
)

AREA_REQUIRED = "Selecione uma área"
AREA_SOLD_OUT = "Essa área não possui vagas para a quantidade escolhida."
NO_AREAS = "Não há áreas cadastradas para esta unidade."

NAME_TOO_SHORT = "Informe seu nome completo"
CPF_INVALID = "Informe um CPF com 11 dígitos"
EMAIL_INVALID = "Informe um e-mail válido"
PHONE_INVALID = "Informe um telefone válido"
BIRTHDAY_REQUIRED = "Informe sua data de nascimento"
BIRTHDAY_IN_FUTURE = "A data de nascimento não pode estar no futuro"

SELECT_DATE_AND_TIME = "Selecione data e horário."
INVALID_DATE = "Data inválida. Selecione uma data a partir de hoje."
CONTACT_INVALID = "Preencha um e-mail e telefone válidos."
SELECT_UNIT_AND_AREA = "Selecione a unidade e a área."
NO_CAPACITY = (
    "Essa área não possui vagas para a quantidade escolhida. "
    "Ajuste o total ou escolha outra área."
)
SUBMISSION_FALLBACK = "Não foi possível concluir sua reserva agora. Tente novamente."
NETWORK_RETRY = "Falha de conexão com o servidor. Verifique sua internet e tente novamente."

UNITS_LOAD_FAILED = "Falha ao carregar unidades."
AREAS_LOAD_FAILED = "Falha ao carregar áreas."
AVAILABILITY_LOAD_FAILED = "Falha ao carregar disponibilidade."

LOOKUP_CODE_REQUIRED = "Informe o código da reserva (ex.: JT5WK6)."
LOOKUP_NOT_FOUND = "Reserva não encontrada."
LOOKUP_FAILED = "Falha ao consultar reserva."

CHECKIN_WAITING = "Aguardando leitura do QR…"
CHECKIN_CONFIRMED = "Check-in confirmado!"
CHECKIN_RECONNECTING = "Reconectando…"


def time_window_message(opening: str, closing: str) -> str:
    return f"Horário disponível entre {opening} e {closing}"


def time_unavailable_message(opening: str, closing: str) -> str:
    return f"Horário indisponível. {time_window_message(opening, closing)}."
