"""Error taxonomy. Messages are meant to be shown to users verbatim."""


class KinshipError(Exception):
    code = "error"


class NotFoundError(KinshipError, LookupError):
    code = "not_found"


class PersonNotFoundError(NotFoundError):
    code = "person_not_found"

    def __init__(self, person_id: int):
        self.person_id = person_id
        super().__init__(f"Person with id {person_id} not found")


class ParentNotFoundError(NotFoundError):
    code = "parent_not_found"

    def __init__(self, parent_id: int):
        self.person_id = parent_id
        super().__init__(f"Parent with id {parent_id} does not exist")


class ChildNotFoundError(NotFoundError):
    code = "child_not_found"

    def __init__(self, child_id: int):
        self.person_id = child_id
        super().__init__(f"Child with id {child_id} does not exist")


class RelationshipError(KinshipError, ValueError):
    code = "invalid_relationship"


class SelfRelationshipError(RelationshipError):
    code = "self_relationship"

    def __init__(self, person_id: int):
        self.person_id = person_id
        super().__init__("A person cannot be their own parent")


class DuplicateRelationshipError(RelationshipError):
    code = "duplicate_relationship"

    def __init__(self, parent_id: int, child_id: int):
        self.parent_id, self.child_id = parent_id, child_id
        super().__init__("Relationship already exists between these people")


class CircularRelationshipError(RelationshipError):
    code = "circular_relationship"

    def __init__(self, parent_id: int, child_id: int, path: list[int] | None = None):
        self.parent_id, self.child_id = parent_id, child_id
        self.path = path
        if path and len(path) > 2:
            chain = " -> ".join(str(p) for p in path)
            msg = f"Cannot create circular parent-child relationship ({chain})"
        else:
            msg = "Cannot create circular parent-child relationship"
        super().__init__(msg)


class PersistenceError(KinshipError, RuntimeError):
    code = "persistence_failure"
