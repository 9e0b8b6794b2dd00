"""Result access services: credential checks, access grants, file delivery."""
