"""Prompt composer - renders the business snapshot ahead of the first question."""

from collections.abc import Sequence
from typing import Any

from crm_assistant.schemas.internal import Snapshot
from crm_assistant.schemas.requests import ConversationTurn
from crm_assistant.services.context_aggregator import parse_amount


def format_brl(value: float) -> str:
    """Format an amount with pt-BR separators.

    Two to three decimals are shown: 1234.5 -> '1.234,50',
    80.125 -> '80,125'.
    """
    text = f"{value:,.3f}"
    if text.endswith("0"):
        text = text[:-1]
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def _field(item: Any, name: str) -> Any:
    return item.get(name) if isinstance(item, dict) else None


def _text(value: Any, default: str) -> str:
    if value is None or value == "":
        return default
    return str(value)


class PromptComposer:
    """Builds the text sent to the model for a user message.

    Only the first message of a conversation carries the data snapshot;
    later messages go out verbatim and rely on the history the client keeps.
    """

    ACTIVITY_DESCRIPTION_WIDTH = 50
    ACTIVITY_DESCRIPTION_DELIMITER = "|"
    PRODUCT_DESCRIPTION_WIDTH = 40
    PRODUCT_DISPLAY_LIMIT = 8

    CONTEXT_HEADER = "CONTEXTO DO SISTEMA:"
    QUESTION_MARKER = "PERGUNTA DO USUÁRIO:"

    def compose(
        self,
        history: Sequence[ConversationTurn],
        snapshot: Snapshot | None,
        message: str,
    ) -> str:
        """
        Render the prompt for ``message``.

        Args:
            history: Turns already exchanged in this conversation
            snapshot: Business data snapshot, only used on the first turn
            message: The user's literal question

        Returns:
            ``message`` itself when the conversation already started,
            otherwise the context block followed by the question
        """
        if history or snapshot is None:
            return message

        sections = [
            self.CONTEXT_HEADER,
            self._summary(snapshot),
            self._leads_section(snapshot),
            self._activities_section(snapshot),
            self._orders_section(snapshot),
            self._products_section(snapshot),
            self._partners_section(snapshot),
            f"{self.QUESTION_MARKER}\n{message}",
        ]
        return "\n\n".join(section for section in sections if section)

    def _summary(self, snapshot: Snapshot) -> str:
        return (
            f"👤 Usuário: {snapshot.user_name}\n"
            f"📊 Resumo: {snapshot.leads.available} leads, "
            f"{snapshot.activities.available} atividades, "
            f"{snapshot.order_count} pedidos "
            f"(R$ {format_brl(snapshot.order_total)})"
        )

    def _leads_section(self, snapshot: Snapshot) -> str | None:
        leads = snapshot.leads
        if not leads.items:
            return None

        lines = [f"💰 LEADS ATIVOS ({leads.available}):"]
        for lead in leads.items:
            lines.append(
                f"• {_text(_field(lead, 'NOME'), 'Sem nome')}"
                f" - R$ {format_brl(parse_amount(_field(lead, 'VALOR')))}"
                f" - {_text(_field(lead, 'STATUS_LEAD'), 'EM_ANDAMENTO')}"
                f" - Estágio: {_text(_field(lead, 'CODESTAGIO'), 'N/A')}"
            )
        return "\n".join(lines)

    def _activities_section(self, snapshot: Snapshot) -> str | None:
        activities = snapshot.activities
        if not activities.items:
            return None

        lines = [f"📋 ATIVIDADES RECENTES ({activities.available}):"]
        for activity in activities.items:
            description = self._activity_description(_field(activity, "DESCRICAO"))
            lines.append(
                f"• {description}"
                f" - {_text(_field(activity, 'TIPO'), '')}"
                f" - {_text(_field(activity, 'STATUS'), 'AGUARDANDO')}"
            )
        return "\n".join(lines)

    def _activity_description(self, raw: Any) -> str:
        text = _text(raw, "")
        head = text.split(self.ACTIVITY_DESCRIPTION_DELIMITER, 1)[0]
        description = head or text or "Sem descrição"
        return description[: self.ACTIVITY_DESCRIPTION_WIDTH]

    def _orders_section(self, snapshot: Snapshot) -> str | None:
        orders = snapshot.orders
        if not orders.items:
            return None

        lines = [f"💵 PEDIDOS RECENTES ({len(orders.items)} de {snapshot.order_count}):"]
        for order in orders.items:
            lines.append(
                f"• Pedido {_text(_field(order, 'NUNOTA'), '?')}"
                f" - {_text(_field(order, 'NOMEPARC'), 'N/A')}"
                f" - R$ {format_brl(parse_amount(_field(order, 'VLRNOTA')))}"
                f" - {_text(_field(order, 'DTNEG'), 'N/A')}"
            )
        return "\n".join(lines)

    def _products_section(self, snapshot: Snapshot) -> str | None:
        products = snapshot.products
        if not products.items:
            return None

        lines = [f"📦 PRODUTOS EM ESTOQUE ({products.available} disponíveis):"]
        for product in products.items[: self.PRODUCT_DISPLAY_LIMIT]:
            description = _text(_field(product, "DESCRPROD"), "Sem descrição")
            stock = parse_amount(_field(product, "ESTOQUE"))
            lines.append(
                f"• {description[: self.PRODUCT_DESCRIPTION_WIDTH]} - Estoque: {stock:.0f}"
            )
        return "\n".join(lines)

    def _partners_section(self, snapshot: Snapshot) -> str | None:
        partners = snapshot.partners
        if not partners.items:
            return None
        return f"👥 CLIENTES CADASTRADOS: {partners.available} clientes disponíveis"
