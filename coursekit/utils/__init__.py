from coursekit.utils.numbers import ensure_utc_aware, percent_of


__all__ = ["ensure_utc_aware", "percent_of"]
