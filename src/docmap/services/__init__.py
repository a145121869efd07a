"""Service layer — operations the CLI exposes, returning ServiceResult."""
