from github2trello.cli import main

main()
