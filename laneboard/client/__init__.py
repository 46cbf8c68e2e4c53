from laneboard.client.view import BoardView
from laneboard.client.agent import BoardAgent
