"""
Domain rules: enrollment, lecture review, submissions, course content
"""
