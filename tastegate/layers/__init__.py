"""
Pipeline Layers

- learning: taste genome, keyword learner, outcome validation, feedback
- intelligence: conviction scoring
- orchestration: approval gate and posting scheduler
"""
