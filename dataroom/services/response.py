class ListResponseMixin:
    @classmethod
    def list_response(cls, db, *args, **kwargs):
        items = cls.list(db, *args, **kwargs)
        return {"items": items, "count": len(items)}
