"""Output layer — ServiceResult formatting and Rich renderers."""
