"""Language-model provider clients."""
