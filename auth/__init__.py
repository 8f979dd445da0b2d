"""
auth — User authentication module.

Provides:
  • Credential validation (name / email / password rules)
  • Password hashing (bcrypt, salted per hash)
  • JWT issuing, verification and logout-by-revocation
  • ``AuthService`` — register / login / me / logout
  • Auth API routes and FastAPI dependencies
"""
