"""Prompt building blocks shared by the pipeline stages."""

from typing import List, Optional

from backend.models import ChatMessage, RequestHints
from .reasoning import strip_reasoning


ARTIFACTS_PROMPT = """
Você tem acesso a ferramentas especiais que podem ser usadas quando apropriado:

1. createDocument: Use para criar documentos de texto, código ou outros conteúdos extensos (mais de 10 linhas).
2. updateDocument: Use para atualizar documentos já criados.
3. getWeather: Use para obter informações de clima quando relevante.
4. requestSuggestions: Use para sugerir próximos passos ao usuário.

Quando criar documentos de código, especifique a linguagem nos backticks, ex: ```python
seu_codigo_aqui
```

IMPORTANTE:
- Use createDocument para código com mais de 10 linhas
- Use createDocument para conteúdo que o usuário pode querer salvar/reutilizar
- NÃO atualize documentos imediatamente após criá-los
- Espere feedback do usuário antes de atualizar documentos
"""

REGULAR_PROMPT = (
    "Você é um assistente amigável! Mantenha suas respostas concisas e úteis."
)


def request_hints_prompt(hints: Optional[RequestHints]) -> str:
    """Render location hints about the origin of the request."""
    hints = hints or RequestHints()
    return (
        "Sobre a origem da solicitação do usuário:\n"
        f"- lat: {hints.latitude or 'desconhecida'}\n"
        f"- lon: {hints.longitude or 'desconhecida'}\n"
        f"- cidade: {hints.city or 'desconhecida'}\n"
        f"- país: {hints.country or 'desconhecido'}\n"
    )


def render_transcript(messages: List[ChatMessage]) -> str:
    """Prior conversation as a plain-text transcript, without reasoning blocks."""
    return "\n\n".join(
        f"Usuário: {m.content}" if m.role == "user"
        else f"Assistente: {strip_reasoning(m.content)}"
        for m in messages
    )


def stage_system_prompt(agent_prompt: str, context_prompt: str) -> str:
    return f"{agent_prompt}\n\n{context_prompt}"


def analyst_input(user_content: str, transcript: str) -> str:
    if not transcript:
        return user_content
    return (
        f"Contexto da conversa anterior:\n{transcript}\n\n"
        f"Pergunta atual do usuário:\n{user_content}"
    )


def expert_input(user_content: str, analysis: str) -> str:
    return f"Pergunta do usuário:\n{user_content}\n\nAnálise do problema:\n{analysis}"


def critic_input(user_content: str, proposal: str) -> str:
    return (
        f"Pergunta do usuário:\n{user_content}\n\n"
        f"Resposta proposta pelo Especialista:\n{proposal}"
    )


def consolidator_input(
    user_content: str, analysis: str, proposal: str, critique: str
) -> str:
    return (
        f"Pergunta do usuário:\n{user_content}\n\n"
        f"Análise do problema:\n{analysis}\n\n"
        f"Resposta do Especialista:\n{proposal}\n\n"
        f"Críticas e sugestões de melhoria:\n{critique}"
    )


def title_prompt() -> str:
    return (
        "Gere um título curto com base na primeira mensagem do usuário. "
        "O título deve ter no máximo 80 caracteres, resumir a mensagem e "
        "não usar aspas nem dois-pontos."
    )
