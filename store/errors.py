class PersistenceError(Exception):
    """The storage collaborator rejected a write.

    Raised after the optimistic in-memory change was already applied, so the
    loaded board is ahead of what is stored.
    """

    def __init__(self, message: str, entity: str = "", entity_id: str = ""):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id
