"""
Exceções de Domínio do Service Desk.

Erros tipados que atravessam as camadas sem depender do data store
ou do framework de UI.

Hierarquia:
    DomainException (base)
    ├── ValidationError (entrada rejeitada antes de qualquer escrita)
    ├── EntityNotFoundError (documento não existe)
    ├── BusinessRuleViolationError (regra de negócio violada)
    ├── AuthorizationError (identidade sem papel privilegiado)
    ├── WriteError (escrita no gateway falhou)
    ├── SubscriptionError (live query falhou - terminal para o handle)
    └── GatewayError (falha reportada pelo gateway)
        └── PermissionDeniedError (regras de acesso do data store)

Nenhuma dessas exceções é tratada com retry automático: uma nova
ação do usuário (reabrir a view, reenviar) é o mecanismo de retry.
"""


class DomainException(Exception):
    """
    Raiz da hierarquia; a UI captura esta classe para exibir a mensagem.

    O code padrão é o nome da classe.

    Example:
        try:
            controller.confirm_rejection()
        except DomainException as e:
            logger.error(f"Erro de domínio: {e}")
    """

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Serializa exceção para dicionário (útil para a camada de UI)."""
        return {
            "error": self.code,
            "message": self.message,
        }


class ValidationError(DomainException):
    """
    Erro de validação de dados de entrada.

    Lançada quando dados fornecidos não atendem aos requisitos
    mínimos para processamento. Sempre lançada antes de qualquer
    chamada ao gateway.

    Example:
        if not text.strip():
            raise ValidationError("Comentário não pode ser vazio", field="text")
    """

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class EntityNotFoundError(DomainException):
    """
    Documento não encontrado no gateway.

    Distinto de uma falha de permissão: o gateway respondeu,
    mas o documento não existe.

    Example:
        raw = gateway.get_document("tickets", ticket_id)
        if raw is None:
            raise EntityNotFoundError(f"Ticket {ticket_id} não encontrado")
    """

    def __init__(self, message: str, entity_type: str = None, entity_id: str = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id:
            result["entity_id"] = self.entity_id
        return result


class BusinessRuleViolationError(DomainException):
    """
    Violação de regra de negócio.

    Example:
        if not can_transition(ticket.status, target):
            raise BusinessRuleViolationError(
                "Transição não permitida",
                rule="invalid_status_transition"
            )
    """

    def __init__(self, message: str, rule: str = None):
        self.rule = rule
        super().__init__(message, "BUSINESS_RULE_VIOLATION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.rule:
            result["rule"] = self.rule
        return result


class AuthorizationError(DomainException):
    """Identidade não possui o papel privilegiado exigido."""

    def __init__(self, message: str, uid: str = None):
        self.uid = uid
        super().__init__(message, "AUTHORIZATION_ERROR")


class WriteError(DomainException):
    """
    Falha ao escrever no gateway.

    Erro recuperável: o estado local não é alterado e a próxima
    snapshot da projeção é a fonte da verdade sobre a escrita.

    Attributes:
        operation: Nome da operação (ex: "change_status", "append_comment")
    """

    def __init__(self, message: str, operation: str = None):
        self.operation = operation
        super().__init__(message, "WRITE_ERROR")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.operation:
            result["operation"] = self.operation
        return result


class SubscriptionError(DomainException):
    """
    Falha terminal de uma live query (permissão ou conectividade).

    O handle que recebe este erro para de atualizar; o consumidor
    precisa reabrir a projeção.
    """

    def __init__(self, message: str, query: object = None):
        self.query = query
        super().__init__(message, "SUBSCRIPTION_ERROR")


class GatewayError(DomainException):
    """Falha reportada pelo gateway de documentos."""

    def __init__(self, message: str, code: str = "GATEWAY_ERROR"):
        super().__init__(message, code)


class PermissionDeniedError(GatewayError):
    """Regras de acesso do data store recusaram a operação."""

    def __init__(self, message: str):
        super().__init__(message, "PERMISSION_DENIED")
