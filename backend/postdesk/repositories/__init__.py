"""Persistence capability behind the query pipeline (find / find_by_id / save / delete)."""
