from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nDB HEALTH:')
resp = client.get('/health/db')
print(resp.status_code)
print(resp.json())

print('\nSTATS:')
print(client.get('/api/gamification/stats').json())

print('\nLEADERBOARD:')
print(client.get('/api/gamification/leaderboard').json())

print('\nMUNICIPAL SEARCH (no token):')
print(client.get('/api/municipal/search').status_code)
