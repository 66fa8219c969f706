from millerview.main import main

main()
