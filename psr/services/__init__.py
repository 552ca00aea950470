"""Release services: plugin archive reading, store access and the release flow."""
