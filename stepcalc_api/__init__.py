"""HTTP front end for stepcalc"""
