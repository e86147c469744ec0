"""Front-end services: auth session, storage, catalogues and images."""
