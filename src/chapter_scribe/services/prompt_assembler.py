"""Prompt assembler — builds the ordered message sequence for the provider.

The result is always ``[system] + history + [user]``.  The system message
is the fixed instruction block below and never comes from the client;
history items that try to smuggle one in are rejected.
"""

from __future__ import annotations

from typing import Any, Mapping

from chapter_scribe.domain.entities import ChatRequest, Message, Role
from chapter_scribe.domain.exceptions import InvalidInputError

# ── Prompt templates ────────────────────────────────────────────────────────

SYSTEM_PROMPT_VERSION = "1.0.0"

SYSTEM_PROMPT = """\
Você é o Escriba de Capítulos, um agente especializado em redigir capítulos técnicos de relatórios.

MISSÃO: Redigir capítulos técnicos com coerência textual, estrutura argumentativa completa \
(introdução, desenvolvimento e conclusão), e fundamentação com base em dados atualizados e \
fontes confiáveis.

INSTRUÇÕES ESTRUTURAIS:
1. Objetivo: Redigir um capítulo técnico completo, com até 2.000 palavras, tratando de forma \
aprofundada o tema solicitado.
2. Estrutura Obrigatória:
   • Introdução: contextualize o tema com base em dados disponíveis e justificativa de relevância.
   • Desenvolvimento: aprofunde a análise com base em evidências, dados, documentos, estudos ou \
benchmarks nacionais/internacionais.
   • Conclusão: sistematize os achados e prepare o terreno para o próximo capítulo (sem \
fechamento definitivo).
3. Linguagem: técnica, formal e precisa. Sem adjetivação subjetiva ou juízos de valor.
4. Referências: todas as fontes consultadas devem ser citadas conforme normas da ABNT (NBR 6023).

COMANDOS ESPECIAIS:
• "Tema: [título]" → define o conteúdo principal a ser desenvolvido
• "Base de dados: [documentos]" → orienta a fonte prioritária
• "Formato: Markdown | PDF | DOCX" → define o formato de entrega
• "Foco especial em: [benchmarking, dados quantitativos, legislação]" → define o eixo prioritário

COMPORTAMENTO DE BUSCA:
• Sempre que o tema exigir atualização, usar mecanismos de busca com foco em sites científicos, \
institucionais ou especializados
• Referenciar qualquer dado, citação ou estatística com indicação clara de fonte e ano
• Indicar claramente a origem de cada dado relevante

Responda sempre em português brasileiro, com linguagem técnica e formal."""

SMOKE_TEST_SYSTEM_PROMPT = 'Você é um assistente de teste. Responda apenas "Teste funcionando!"'
SMOKE_TEST_USER_PROMPT = "Teste de funcionamento"

_HISTORY_ROLES = frozenset({Role.USER.value, Role.ASSISTANT.value})


def _history_problems(index: int, item: Any) -> list[dict[str, str]]:
    field = f"conversationHistory[{index}]"
    if not isinstance(item, Mapping):
        return [{"field": field, "msg": "Item do histórico deve ser um objeto", "location": "body"}]
    problems = []
    if item.get("role") not in _HISTORY_ROLES:
        problems.append(
            {"field": f"{field}.role", "msg": "Papel deve ser 'user' ou 'assistant'", "location": "body"}
        )
    if not isinstance(item.get("content"), str):
        problems.append(
            {"field": f"{field}.content", "msg": "Conteúdo deve ser texto", "location": "body"}
        )
    return problems


def assemble(request: ChatRequest) -> list[Message]:
    """Return ``[system] + history + [user]`` for *request*.

    Every malformed history item is reported in one :class:`InvalidInputError`.
    The input history is only read, never modified.
    """
    problems = [
        problem
        for i, item in enumerate(request.conversation_history)
        for problem in _history_problems(i, item)
    ]
    if problems:
        raise InvalidInputError(problems)

    history = [
        Message(role=Role(item["role"]), content=item["content"])
        for item in request.conversation_history
    ]
    return [
        Message(role=Role.SYSTEM, content=SYSTEM_PROMPT),
        *history,
        Message(role=Role.USER, content=request.message),
    ]


def smoke_test_messages() -> list[Message]:
    """Fixed two-message conversation used by the provider smoke test."""
    return [
        Message(role=Role.SYSTEM, content=SMOKE_TEST_SYSTEM_PROMPT),
        Message(role=Role.USER, content=SMOKE_TEST_USER_PROMPT),
    ]
