from sqlalchemy import inspect


def dump(obj, **kwargs) -> dict:
    # model_dump reads __dict__, which a commit empties; load the row first
    state = inspect(obj)
    if state.expired_attributes and not state.detached:
        state.session.refresh(obj)

    return obj.model_dump(**kwargs)
