"""Custom exceptions for the retail POS application."""


class PosError(Exception):
    """
    Base exception for all application errors.

    Settlements annotate the error with the step that failed and the steps
    already committed (at_step), so partial state can be reconciled by hand.
    """
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload
        # Set when raised from a settlement step
        self.step = None
        self.completed_steps = []

    def at_step(self, step, completed_steps):
        self.step = step
        self.completed_steps = list(completed_steps)
        return self

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        if self.step:
            rv['failed_step'] = self.step
            rv['completed_steps'] = self.completed_steps
        return rv


class ValidationError(PosError):
    """Raised for invalid input or a missing required selection."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class EmptyCartError(ValidationError):
    """Raised when settling a cart (sale or return) with no lines."""
    def __init__(self, message="Aggiungi almeno un prodotto"):
        super().__init__(message)


class InvalidDiscountCodeError(ValidationError):
    """Raised when a code is unknown, inactive or expired."""
    def __init__(self, code):
        super().__init__('Codice sconto non valido o scaduto', payload={'code': code})


class DiscountScopeError(ValidationError):
    """Raised when a code is applied to the wrong kind of target."""


class DuplicateDiscountError(ValidationError):
    """Raised when the same code is applied twice to one target."""
    def __init__(self, code):
        super().__init__('Codice già applicato', payload={'code': code})


class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class StateConflictError(PosError):
    """Raised when an operation conflicts with the current state of a record."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)


class AlreadyCancelledError(StateConflictError):
    """Raised when cancelling a sale that is already cancelled."""
    def __init__(self, sale_number):
        super().__init__('Vendita già annullata', payload={'sale_number': sale_number})


class OutOfStockError(StateConflictError):
    """Raised when adding a product whose stock is exhausted."""
    def __init__(self, product_name):
        super().__init__(
            f'Prodotto non disponibile in magazzino: {product_name}',
            payload={'product': product_name}
        )


class InsufficientStockError(StateConflictError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_name, required, available):
        message = f"Quantità non disponibile per {product_name}: richiesti {required}, disponibili {available}"
        super().__init__(message, payload={
            'product': product_name,
            'required': required,
            'available': available
        })


class StoreError(PosError):
    """Raised when a data-store call fails (network, constraint violation...)."""
    def __init__(self, message="Errore di archiviazione", payload=None):
        super().__init__(message, 503, payload)


class SequenceUnavailableError(StoreError):
    """Raised when the store cannot hand out a value from a named sequence."""
    def __init__(self, sequence_name):
        super().__init__(f'Sequenza non disponibile: {sequence_name}', payload={'sequence': sequence_name})
