# Models package init
"""
PostDesk Backend — ORM Models
===============================

    - user.py: User (users table)
    - post.py: Post (posts table)
"""
